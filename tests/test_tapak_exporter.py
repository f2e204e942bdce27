"""Tests for the command-line export workflow."""

import json

import tapak_exporter


class TestMain:
    """Request file to output directory."""

    def test_full_export(self, store_payload, tmp_path) -> None:
        store_payload['export'] = {
            'projectId': 7,
            'author': {'name': 'Siti Rahayu', 'email': 'siti@example.co.id'},
            'renderedAt': '2024-05-01T08:30:00+07:00',
        }
        request = tmp_path / 'request.json'
        request.write_text(json.dumps(store_payload), encoding='utf-8')

        output_path = tapak_exporter.main(str(request), 'run', tmp_path / 'outputs')

        assert output_path is not None
        names = sorted(p.name for p in output_path.iterdir())
        assert names == [
            'Gudang Logistik Cakung_Peta_Tapak_Proyek.pdf',
            'Gudang Logistik Cakung_Peta_Tapak_Proyek_2.pdf',
            'Gudang Logistik Cakung_Tapak_proyek.zip',
            'metadata.json',
        ]
        metadata = json.loads((output_path / 'metadata.json').read_text(encoding='utf-8'))
        assert metadata['object_ids'] == [1, 2]

    def test_selected_polygon(self, store_payload, tmp_path) -> None:
        store_payload['export'] = {'projectId': 7, 'objectIds': [2]}
        request = tmp_path / 'request.json'
        request.write_text(json.dumps(store_payload), encoding='utf-8')

        output_path = tapak_exporter.main(str(request), 'run', tmp_path / 'outputs')
        assert len(list(output_path.glob('*.pdf'))) == 1

    def test_unknown_project_fails(self, store_payload, tmp_path) -> None:
        store_payload['export'] = {'projectId': 99}
        request = tmp_path / 'request.json'
        request.write_text(json.dumps(store_payload), encoding='utf-8')

        assert tapak_exporter.main(str(request), 'run', tmp_path / 'outputs') is None

    def test_missing_request_file(self, tmp_path) -> None:
        assert tapak_exporter.main(str(tmp_path / 'missing.json'), 'run', tmp_path) is None
