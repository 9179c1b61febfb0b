# ==============================================================================
# REPOSITORIO DE FACTURAS
# ==============================================================================
# Encapsula todo el acceso a invoices.json
# Las facturas se almacenan como diccionario: {invoice_id: {datos}}
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from ventas_online.repositories.base import DictRepository


class InvoiceRepository(DictRepository):
    """
    Formato de datos en invoices.json:
    {
        "e4f5...": {
            "id": "e4f5...",
            "user": "<user_id>",
            "items": [{"product": "...", "name": "...", "quantity": 2,
                       "unit_price": 10.0, "subtotal": 20.0}],
            "status": "pending",
            "total": 20.0,
            "created_at": "2024-01-01T10:00:00+00:00",
            "updated_at": "2024-01-01T10:00:00+00:00",
            "idempotency_key": null
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'invoices.json'))

    def get_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(invoice_id)

    def save_invoice(self, invoice_data: Dict[str, Any]) -> None:
        self.update(invoice_data['id'], invoice_data)

    def delete_invoice(self, invoice_id: str) -> Optional[Dict[str, Any]]:
        return self.delete(invoice_id)

    def get_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Facturas de un usuario, más recientes primero."""
        invoices = self.find_all_by('user', user_id)
        return sorted(invoices, key=lambda i: i.get('created_at', ''), reverse=True)

    def find_by_idempotency_key(self, user_id: str, key: str) -> Optional[Dict[str, Any]]:
        for invoice in self.get_all().values():
            if invoice.get('user') == user_id and invoice.get('idempotency_key') == key:
                return invoice
        return None

    def units_sold_by_product(self) -> Dict[str, int]:
        """
        Unidades vendidas por producto según el historial de facturas.

        Returns:
            {product_id: unidades}
        """
        sold: Dict[str, int] = {}
        for invoice in self.get_all().values():
            for item in invoice.get('items', []):
                pid = item.get('product')
                sold[pid] = sold.get(pid, 0) + int(item.get('quantity', 0))
        return sold
