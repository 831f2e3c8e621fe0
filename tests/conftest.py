import sys
import pytest
from pathlib import Path

# Add the project root directory to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from process.utils.models import PlanRow


# Common fixtures that can be used across test files
@pytest.fixture
def plan_records():
    """Technical note rows as they come out of the spreadsheet"""
    return [
        {
            'CUP/CUM': '890201',
            'DESCRIPCION CUPS': 'CONSULTA DE PRIMERA VEZ POR MEDICINA GENERAL',
            'DESCRIPCION ID RESOLUCION': 'Consulta externa',
            'FRECUENCIA EVENTOS MES': '100',
            'FRECUENCIA MINIMA MES': '90',
            'FRECUENCIA MAXIMA MES': '110',
            'VALOR UNITARIO': '$ 25.000',
            'VALOR MINIMO MES': '2.250.000',
            'VALOR MAXIMO MES': '2.750.000',
            'COSTO EVENTO MES (VALOR MES)': '2.500.000',
        },
        {
            'CUP/CUM': '903841',
            'DESCRIPCION CUPS': 'GLUCOSA EN SUERO',
            'DESCRIPCION ID RESOLUCION': 'Laboratorio clinico',
            'FRECUENCIA EVENTOS MES': '10',
            'FRECUENCIA MINIMA MES': '9',
            'FRECUENCIA MAXIMA MES': '11',
            'VALOR UNITARIO': '5.000',
            'VALOR MINIMO MES': '45.000',
            'VALOR MAXIMO MES': '55.000',
            'COSTO EVENTO MES (VALOR MES)': '50.000',
        },
    ]


@pytest.fixture
def plan_rows():
    return [
        PlanRow(code='A', description='Servicio A', expected_frequency=10, unit_value=100,
                min_value=900, max_value=1100, monthly_cost=1000),
        PlanRow(code='B', description='Servicio B', expected_frequency=5, unit_value=50,
                min_value=225, max_value=275, monthly_cost=250),
    ]


def make_patient(doc_number, consultas=None, procedimientos=None, medicamentos=None,
                 otros_servicios=None, doc_type='CC'):
    servicios = {}
    if consultas is not None:
        servicios['consultas'] = consultas
    if procedimientos is not None:
        servicios['procedimientos'] = procedimientos
    if medicamentos is not None:
        servicios['medicamentos'] = medicamentos
    if otros_servicios is not None:
        servicios['otrosServicios'] = otros_servicios
    return {
        'tipoDocumentoIdentificacion': doc_type,
        'numDocumentoIdentificacion': str(doc_number),
        'servicios': servicios,
    }


def consulta(code, diagnosis=None, date='2025-01-15 08:00', value='25000', provider='00123'):
    item = {'codConsulta': code, 'vrServicio': value, 'fechaInicioAtencion': date,
            'codPrestador': provider}
    if diagnosis:
        item['codDiagnosticoPrincipal'] = diagnosis
    return item


def procedimiento(code, diagnosis=None, date='2025-01-15 09:00', value='5000'):
    item = {'codProcedimiento': code, 'vrServicio': value, 'fechaInicioAtencion': date}
    if diagnosis:
        item['codDiagnosticoPrincipal'] = diagnosis
    return item


def medicamento(code, quantity, unit_value='1.000', diagnosis=None):
    item = {'codTecnologiaSalud': code, 'cantidadMedicamento': quantity,
            'vrUnitarioMedicamento': unit_value, 'fechaDispensAdmon': '2025-01-16'}
    if diagnosis:
        item['codDiagnosticoPrincipal'] = diagnosis
    return item


def otro_servicio(code, quantity, value='10.000'):
    return {'codTecnologiaSalud': code, 'cantidadOS': quantity, 'vrServicio': value}


@pytest.fixture
def execution_document():
    """A small RIPS document with one patient per category mix"""
    return {
        'numDocumentoIdObligado': '900123456',
        'numFactura': 'FE-1001',
        'usuarios': [
            make_patient(1, consultas=[consulta('890201', 'J069'), consulta('890201', 'J069')],
                         procedimientos=[procedimiento('903841', 'E119')]),
            make_patient(2, consultas=[consulta('890201', 'I10', date='2025-01-20')],
                         medicamentos=[medicamento('19943544-1', '30', diagnosis='I10')],
                         otros_servicios=[otro_servicio('S12101', '2')]),
        ],
    }


@pytest.fixture
def single_code_document():
    """Factory: a document where one patient received `count` consultations of `code`"""
    def _make(code, count, nit='900123456', doc_number=1):
        return {
            'numDocumentoIdObligado': nit,
            'usuarios': [
                make_patient(doc_number, consultas=[
                    consulta(code, 'Z000', date=f'2025-01-{(i % 28) + 1:02d}') for i in range(count)
                ]),
            ],
        }
    return _make
