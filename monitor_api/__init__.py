"""Backend de monitoreo del prototipo SOFC."""
