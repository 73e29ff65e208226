"""Network configuration loader."""

from functools import cache
from pathlib import Path
from typing import Any

import yaml

from cardano_tx_export.core.models import ExporterSettings, GenesisConstants


@cache
def load_networks() -> dict[str, Any]:
    """
    Load network configuration from networks.yaml.

    Returns
    -------
    dict[str, Any]
        Configuration keyed by network name under ``networks``

    """
    path = Path(__file__).parent / "networks.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_network_config(network: str) -> dict[str, Any]:
    """
    Get configuration for a specific network.

    Parameters
    ----------
    network : str
        Network name (e.g., 'mainnet')

    Returns
    -------
    dict[str, Any]
        Network configuration including base URL, genesis and paging limits

    Raises
    ------
    KeyError
        If network is not found in configuration

    """
    return load_networks()["networks"][network]


def get_genesis_constants(network: str) -> GenesisConstants:
    """
    Get the epoch-to-time constants for a network.

    Parameters
    ----------
    network : str
        Network name

    Returns
    -------
    GenesisConstants
        Start timestamp, epoch length and start epoch

    """
    return GenesisConstants(**get_network_config(network)["genesis"])


def get_base_url(network: str) -> str:
    """Get the indexer base URL for a network."""
    return get_network_config(network)["base_url"]


def get_all_supported_networks() -> list[str]:
    """
    Get list of all supported network names.

    Returns
    -------
    list[str]
        List of network names

    """
    return list(load_networks()["networks"].keys())


def get_exporter_settings(network: str) -> ExporterSettings:
    """
    Build pipeline settings from a network's configuration.

    Parameters
    ----------
    network : str
        Network name

    Returns
    -------
    ExporterSettings
        Paging limits, batch size, batch delay and genesis constants

    """
    config = get_network_config(network)
    throttle = config["throttle"]
    return ExporterSettings(
        page_size=config["paging"]["page_size"],
        max_pages=config["paging"]["max_pages"],
        batch_size=throttle["batch_size"],
        # Pause between detail batches is twice the per-request interval
        batch_delay=throttle["min_interval_seconds"] * 2,
        genesis=get_genesis_constants(network),
    )
