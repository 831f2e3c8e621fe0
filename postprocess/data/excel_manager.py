import os
from pathlib import Path
from typing import Iterable, Optional
from openpyxl import Workbook
from process.config.settings import MATRIX_HEADERS, DISCOUNT_HEADERS, CSV_DELIMITER
from process.utils.matrix import matrix_to_frame, discount_to_frame
from process.utils.models import MatrixRow, DiscountRow


def write_matrix_workbook(file_path, matrix_rows: Iterable[MatrixRow],
                          discount_rows: Optional[Iterable[DiscountRow]] = None):
    """Write the execution matrix (and the discount matrix when given) to an Excel file"""
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    ws = wb.active
    ws.title = "Matriz Ejecucion"
    ws.append(MATRIX_HEADERS)
    for row in matrix_rows:
        ws.append(list(row.as_export_row()))

    if discount_rows is not None:
        ws_discount = wb.create_sheet("Matriz Descuentos")
        ws_discount.append(DISCOUNT_HEADERS)
        for row in discount_rows:
            ws_discount.append(list(row.as_export_row()))

    wb.save(file_path)
    return file_path


def write_matrix_csv(file_path, matrix_rows: Iterable[MatrixRow]):
    """CSV with ';' separator, decimal comma and BOM so spreadsheets open it as es-CO"""
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    matrix_to_frame(matrix_rows).to_csv(
        file_path, sep=CSV_DELIMITER, decimal=",", index=False, encoding="utf-8-sig"
    )
    return file_path


def write_discount_csv(file_path, discount_rows: Iterable[DiscountRow]):
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    discount_to_frame(discount_rows).to_csv(
        file_path, sep=CSV_DELIMITER, decimal=",", index=False, encoding="utf-8-sig"
    )
    return file_path


def export_paths(output_dir, stem="matriz_ejecucion_vs_esperado"):
    """Output file names for one analysis run"""
    return {
        "xlsx": os.path.join(output_dir, f"{stem}.xlsx"),
        "csv": os.path.join(output_dir, f"{stem}.csv"),
        "discount_csv": os.path.join(output_dir, "matriz_descuentos.csv"),
        "summary": os.path.join(output_dir, "resumen_analisis.json"),
    }
