# clinicstock/utils/export.py
import csv
import logging
from io import StringIO, BytesIO
from typing import List, Dict, Any, Iterable

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter

from clinicstock.models.product import Product
from clinicstock.models.stock_movement import StockMovement
from clinicstock.utils.dates import to_local

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


class TabularExporter:
    """Exportação de listas de dicionários para Excel ou CSV em memória"""

    def to_excel_bytes(self, data: List[Dict[str, Any]], sheet_name: str = "Dados") -> BytesIO:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name

        if not data:
            ws["A1"] = "Nenhum dado para exportar"
            ws["A1"].font = Font(italic=True, color="808080")
        else:
            headers = list(data[0].keys())
            for col_idx, header in enumerate(headers, 1):
                cell = ws.cell(row=1, column=col_idx, value=header)
                self._apply_header_style(cell)

            for row_idx, row_data in enumerate(data, 2):
                for col_idx, key in enumerate(headers, 1):
                    ws.cell(row=row_idx, column=col_idx, value=row_data.get(key))

            ws.freeze_panes = "A2"
            self._auto_adjust_column_width(ws)

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        logger.info(f"Planilha '{sheet_name}' gerada com {len(data)} linha(s)")
        return output

    def to_csv_bytes(self, data: List[Dict[str, Any]]) -> BytesIO:
        buffer = StringIO()
        if data:
            writer = csv.DictWriter(buffer, fieldnames=list(data[0].keys()), delimiter=";")
            writer.writeheader()
            writer.writerows(data)
        # BOM para o Excel reconhecer UTF-8
        return BytesIO(buffer.getvalue().encode("utf-8-sig"))

    def export(self, data: List[Dict[str, Any]], fmt: str, sheet_name: str = "Dados") -> BytesIO:
        if fmt == "csv":
            return self.to_csv_bytes(data)
        return self.to_excel_bytes(data, sheet_name=sheet_name)

    def _apply_header_style(self, cell):
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill(start_color="2F6F8F", end_color="2F6F8F", fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center")

    def _auto_adjust_column_width(self, ws):
        for col_idx, column in enumerate(ws.columns, 1):
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 2, 50)


def media_type_for(fmt: str) -> str:
    return CSV_MEDIA_TYPE if fmt == "csv" else XLSX_MEDIA_TYPE


# =====================================
# LINHAS DE EXPORTAÇÃO
# =====================================
def product_rows(products: Iterable[Product]) -> List[Dict[str, Any]]:
    return [
        {
            "Nome": p.name,
            "Categoria": p.category,
            "Código de barras": p.barcode or "",
            "Estoque atual": p.current_stock,
            "Estoque mínimo": p.minimum_stock,
            "Unidade": p.unit,
            "Validade": p.expiry_date.strftime("%d/%m/%Y") if p.expiry_date else "",
            "Lote": p.batch_number or "",
            "Fornecedor": p.supplier or "",
            "Preço de custo": float(p.cost_price or 0),
            "Valor em estoque": p.stock_value,
        }
        for p in products
    ]


def movement_rows(movements: Iterable[StockMovement]) -> List[Dict[str, Any]]:
    return [
        {
            "Data": to_local(m.date).strftime("%d/%m/%Y %H:%M") if m.date else "",
            "Produto": m.product_name,
            "Tipo": "Entrada" if m.type == "entrada" else "Saída",
            "Motivo": m.reason,
            "Quantidade": m.quantity,
            "Estoque anterior": m.previous_stock,
            "Estoque novo": m.new_stock,
            "Profissional": m.professional_name or "",
            "Observações": m.notes or "",
        }
        for m in movements
    ]
