"""Network configuration management."""

from cardano_tx_export.data.loader import (
    get_all_supported_networks,
    get_base_url,
    get_exporter_settings,
    get_genesis_constants,
    get_network_config,
    load_networks,
)

__all__ = [
    "get_all_supported_networks",
    "get_base_url",
    "get_exporter_settings",
    "get_genesis_constants",
    "get_network_config",
    "load_networks",
]
