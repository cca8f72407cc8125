"""Piezas compartidas por la API y los jobs: configuración y acceso a BD."""
