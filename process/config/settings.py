import os
from pathlib import Path
from dotenv import load_dotenv

# Project root holds the optional .env
project_root = Path(__file__).resolve().parents[2]
load_dotenv(project_root / '.env')

# Paths (override in .env if needed)
OUTPUT_DIR = os.getenv("PGP_OUTPUT_DIR", str(project_root / "output"))
PLAN_PATH = os.getenv("PGP_PLAN_PATH")
CIE10_PATH = os.getenv("PGP_CIE10_PATH")
LOG_LEVEL = os.getenv("PGP_LOG_LEVEL", "INFO")

# Classification labels
OVER_EXECUTED = "Sobre-ejecutado"
NORMAL = "Ejecución Normal"
UNDER_EXECUTED = "Sub-ejecutado"
MISSING = "Faltante"
UNEXPECTED = "Inesperado"
CLASSIFICATIONS = [OVER_EXECUTED, NORMAL, UNDER_EXECUTED, MISSING, UNEXPECTED]

# Business rules: executed/expected in percent
OVER_EXECUTION_PCT = 111
UNDER_EXECUTION_PCT = 90

# Budget band around the monthly cost
BAND_LOWER_FACTOR = 0.90
BAND_UPPER_FACTOR = 1.10
MONTHS_PER_YEAR = 12

BAND_BELOW = "Por debajo"
BAND_WITHIN = "Dentro de banda"
BAND_ABOVE = "Por encima"

# Plan (technical note) columns: logical field -> accepted headers, in priority order
PLAN_FIELD_SYNONYMS = {
    "code": ["cup/cum", "cups"],
    "description": ["descripcion cups", "descripcion"],
    "activity_description": ["descripcion id resolucion"],
    "expected_frequency": ["frecuencia eventos mes"],
    "min_frequency": ["frecuencia minima mes"],
    "max_frequency": ["frecuencia maxima mes"],
    "unit_value": ["valor unitario"],
    "min_value": ["valor minimo mes"],
    "max_value": ["valor maximo mes"],
    "monthly_cost": ["costo evento mes (valor mes)", "costo evento mes"],
}
PLAN_NUMERIC_FIELDS = [
    "expected_frequency", "min_frequency", "max_frequency",
    "unit_value", "min_value", "max_value", "monthly_cost",
]

# Execution (RIPS JSON) layout
PATIENTS_KEY = "usuarios"
SERVICES_KEY = "servicios"
DIAGNOSIS_FIELD = "codDiagnosticoPrincipal"
DATE_FIELDS = ["fechaInicioAtencion", "fechaDispensAdmon"]
PATIENT_ID_FIELDS = ("tipoDocumentoIdentificacion", "numDocumentoIdentificacion")
PROVIDER_CODE_FIELD = "codPrestador"
OBLIGATED_NIT_FIELD = "numDocumentoIdObligado"
INVOICE_FIELD = "numFactura"

SERVICE_CATEGORIES = [
    {
        "key": "consultas",
        "service_type": "Consulta",
        "code_field": "codConsulta",
        "quantity_field": None,
        "value_field": "vrServicio",
        "unit_value_field": None,
    },
    {
        "key": "procedimientos",
        "service_type": "Procedimiento",
        "code_field": "codProcedimiento",
        "quantity_field": None,
        "value_field": "vrServicio",
        "unit_value_field": None,
    },
    {
        "key": "medicamentos",
        "service_type": "Medicamento",
        "code_field": "codTecnologiaSalud",
        "quantity_field": "cantidadMedicamento",
        "value_field": None,
        "unit_value_field": "vrUnitarioMedicamento",
    },
    {
        "key": "otrosServicios",
        "service_type": "Otro Servicio",
        "code_field": "codTecnologiaSalud",
        "quantity_field": "cantidadOS",
        "value_field": "vrServicio",
        "unit_value_field": None,
    },
]
UNKNOWN_SERVICE_TYPE = "Desconocido"

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]
PERIOD_LABEL = "Periodo"

# Export headers
MATRIX_HEADERS = [
    "Mes", "CUPS", "Descripcion", "Cantidad_Esperada", "Cantidad_Ejecutada", "Diferencia",
    "%_Ejecucion", "Clasificacion", "Valor_Unitario", "Valor_Esperado", "Valor_Ejecutado",
]
DISCOUNT_HEADERS = [
    "CUPS", "Descripcion", "Tipo_Servicio", "Cantidad_Esperada", "Cantidad_Ejecutada",
    "Valor_Unitario", "Valor_Ejecutado", "Valor_a_Reconocer", "Valor_a_Descontar", "Clasificacion",
]
CSV_DELIMITER = ";"
