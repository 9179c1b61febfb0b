"""Ventas Online - API de tienda: catálogo, carrito y facturación."""

__version__ = '1.0.0'
