"""Núcleo de ingesta y distribución en tiempo real."""
