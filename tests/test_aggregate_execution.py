import pytest
from conftest import make_patient, consulta, procedimiento, medicamento
from process.utils.aggregate_execution import (
    aggregate_document, aggregate_month, aggregate_by_month, merge_aggregates,
    summarize_execution, unique_patient_count, find_duplicate_nits, extract_provider_code,
    month_executed_value,
)
from process.utils.extract_services import extract_from_document, parse_event_date


class TestExtractServices:
    def test_records_per_category(self, execution_document):
        records = extract_from_document(execution_document, '1', source='enero.json')
        types = sorted({r.service_type for r in records})
        assert types == ['Consulta', 'Medicamento', 'Otro Servicio', 'Procedimiento']
        assert all(r.month == '1' and r.source == 'enero.json' for r in records)

    def test_medication_value_is_quantity_times_unit(self, execution_document):
        records = extract_from_document(execution_document, '1')
        med = next(r for r in records if r.service_type == 'Medicamento')
        assert med.quantity == 30
        assert med.value == 30000
        assert med.event_date == '2025-01-16'

    def test_patient_and_date(self, execution_document):
        records = extract_from_document(execution_document, '1')
        first = records[0]
        assert first.patient_id == 'CC-1'
        assert first.event_date == '2025-01-15'
        assert first.diagnosis == 'J069'

    @pytest.mark.parametrize("document", [
        None,
        [],
        {},
        {'usuarios': None},
        {'usuarios': 'x'},
        {'usuarios': [None, 'x', {}]},
        {'usuarios': [{'servicios': None}]},
        {'usuarios': [{'servicios': {'consultas': None, 'procedimientos': 'x'}}]},
        {'usuarios': [{'servicios': {'consultas': [None, {'codConsulta': ''}]}}]},
    ])
    def test_missing_structure_is_empty(self, document):
        assert extract_from_document(document, '1') == []
        assert aggregate_document(document, '1') == {}

    def test_unparsable_date_is_none(self):
        assert parse_event_date({'fechaInicioAtencion': 'no registra'}) is None
        assert parse_event_date({}) is None


class TestAggregateDocument:
    def test_counts_and_diagnoses(self, execution_document):
        aggregates = aggregate_document(execution_document, '1')
        consult = aggregates['890201']
        assert consult.total == 3
        assert consult.total_value == 75000
        assert consult.diagnoses == {'J069': 2, 'I10': 1}
        assert consult.predominant_diagnosis == 'J069'
        assert consult.unique_patients == 2

    def test_quantity_fields(self, execution_document):
        aggregates = aggregate_document(execution_document, '1')
        assert aggregates['19943544-1'].total == 30
        assert aggregates['19943544-1'].diagnoses == {'I10': 30}
        assert aggregates['S12101'].total == 2
        assert aggregates['S12101'].total_value == 10000

    def test_missing_quantity_counts_as_one(self):
        document = {'usuarios': [make_patient(1, otros_servicios=[
            {'codTecnologiaSalud': 'S1', 'vrServicio': '100'},
            {'codTecnologiaSalud': 'S1', 'cantidadOS': '', 'vrServicio': '100'},
        ])]}
        assert aggregate_document(document, '1')['S1'].total == 2

    def test_same_day_repeats(self, execution_document):
        aggregates = aggregate_document(execution_document, '1')
        # Patient 1 had two consultations on 2025-01-15
        assert aggregates['890201'].same_day_repeats == 1
        assert aggregates['903841'].same_day_repeats == 0

    def test_predominant_diagnosis_tie_keeps_first_seen(self):
        document = {'usuarios': [make_patient(1, consultas=[
            consulta('890201', 'B01'), consulta('890201', 'A00'),
        ])]}
        assert aggregate_document(document, '1')['890201'].predominant_diagnosis == 'B01'

    def test_no_diagnosis(self):
        document = {'usuarios': [make_patient(1, procedimientos=[procedimiento('903841')])]}
        aggregate = aggregate_document(document, '1')['903841']
        assert aggregate.predominant_diagnosis is None
        assert aggregate.total == 1

    def test_parse_issues_are_collected(self):
        issues = []
        document = {'usuarios': [make_patient(1, medicamentos=[medicamento('M1', 'dos')])]}
        aggregates = aggregate_document(document, '1', source='f.json', issues=issues)
        assert aggregates['M1'].total == 0
        assert [i.field for i in issues] == ['cantidadMedicamento']
        assert issues[0].source == 'f.json'


class TestMerge:
    def test_disjoint_codes_keep_their_counts(self, single_code_document):
        first = aggregate_document(single_code_document('A', 3), '1')
        second = aggregate_document(single_code_document('B', 4), '1')
        merged = merge_aggregates(first, second)
        assert set(merged) == {'A', 'B'}
        assert merged['A'].total == 3
        assert merged['B'].total == 4

    def test_overlapping_codes_are_summed(self, single_code_document):
        first = aggregate_document(single_code_document('A', 3), '1')
        second = aggregate_document(single_code_document('A', 4, doc_number=2), '1')
        merged = merge_aggregates(first, second)
        assert merged['A'].total == 7
        assert merged['A'].diagnoses['Z000'] == 7
        assert merged['A'].unique_patients == 2

    def test_merge_is_commutative_and_associative(self, single_code_document, execution_document):
        a = aggregate_document(single_code_document('890201', 2), '1')
        b = aggregate_document(execution_document, '1')
        c = aggregate_document(single_code_document('903841', 5, doc_number=9), '1')

        def totals(aggregates):
            return {code: (agg.total, agg.total_value, dict(agg.diagnoses)) for code, agg in aggregates.items()}

        assert totals(merge_aggregates(a, b)) == totals(merge_aggregates(b, a))
        assert totals(merge_aggregates(merge_aggregates(a, b), c)) == \
            totals(merge_aggregates(a, merge_aggregates(b, c)))

    def test_merge_does_not_mutate_inputs(self, single_code_document):
        first = aggregate_document(single_code_document('A', 3), '1')
        second = aggregate_document(single_code_document('A', 4), '1')
        merge_aggregates(first, second)
        assert first['A'].total == 3
        assert first['A'].diagnoses['Z000'] == 3

    def test_aggregate_month_combines_files(self, single_code_document):
        documents = [('a.json', single_code_document('A', 3)), ('b.json', single_code_document('A', 2))]
        aggregates = aggregate_month(documents, '2')
        assert aggregates['A'].total == 5

    def test_aggregate_by_month_keeps_months_apart(self, single_code_document):
        by_month = aggregate_by_month({
            '1': [('a.json', single_code_document('A', 3))],
            '2': [('b.json', single_code_document('A', 1))],
        })
        assert by_month['1']['A'].total == 3
        assert by_month['2']['A'].total == 1

    def test_month_executed_value(self, execution_document):
        aggregates = aggregate_document(execution_document, '1')
        assert month_executed_value(aggregates) == 75000 + 5000 + 30000 + 10000


class TestExecutionOverview:
    def test_summary_single_file(self, execution_document):
        summary = summarize_execution([execution_document])
        assert summary.patients == 2
        assert summary.consultations == 3
        assert summary.procedures == 1
        assert summary.medication_units == 30
        assert summary.other_service_units == 2
        assert summary.invoice == 'FE-1001'
        assert summary.obligated_nit == '900123456'

    def test_summary_combined_files(self, execution_document, single_code_document):
        summary = summarize_execution([execution_document, single_code_document('A', 1)])
        assert summary.invoice == 'Combinado (2 archivos)'
        assert summary.patients == 3

    def test_unique_patients_across_files(self, execution_document, single_code_document):
        assert unique_patient_count([execution_document, single_code_document('A', 1)]) == 2

    def test_duplicate_nits(self, single_code_document):
        documents = [single_code_document('A', 1), single_code_document('B', 1),
                     single_code_document('C', 1, nit='800999')]
        assert find_duplicate_nits(documents) == ['900123456']

    def test_provider_code(self, execution_document):
        assert extract_provider_code(execution_document) == '123'
        assert extract_provider_code({'codPrestador': '0044', 'usuarios': []}) == '44'
        assert extract_provider_code({'usuarios': []}) is None
