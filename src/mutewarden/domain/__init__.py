"""Pure scheduling core: model, ports and services."""
