"""Monitoreo de temperaturas de equipos de cocina.

Ingesta (API directa y relay de gateway LoRa), umbrales por canal,
alarmas con delay y rate limit, stream en vivo y notificaciones push.
"""
