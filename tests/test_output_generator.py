"""Tests for writing artifacts to an output directory."""

import json

from core.models import ExportArtifact
from core.output_generator import save_artifacts, unique_filename


class TestSaveArtifacts:
    """Artifacts and metadata.json on disk."""

    def test_writes_files_and_metadata(self, tmp_path) -> None:
        artifacts = [
            ExportArtifact(b'%PDF-1.3 body', 'P_Peta_Tapak_Proyek.pdf', 'application/pdf'),
            ExportArtifact(b'PK\x03\x04 body', 'P_Tapak_proyek.zip', 'application/zip'),
        ]
        output_path = save_artifacts(artifacts, 'run1', tmp_path, metadata={'project': 'P'})

        assert output_path == tmp_path / 'run1'
        assert (output_path / 'P_Peta_Tapak_Proyek.pdf').read_bytes() == b'%PDF-1.3 body'
        metadata = json.loads((output_path / 'metadata.json').read_text(encoding='utf-8'))
        assert metadata['project'] == 'P'
        assert [a['filename'] for a in metadata['artifacts']] == [
            'P_Peta_Tapak_Proyek.pdf', 'P_Tapak_proyek.zip',
        ]

    def test_repeated_filenames_suffixed(self, tmp_path) -> None:
        artifacts = [ExportArtifact(b'x', 'P.pdf', 'application/pdf') for _ in range(3)]
        output_path = save_artifacts(artifacts, 'run2', tmp_path)
        assert sorted(p.name for p in output_path.glob('*.pdf')) == ['P.pdf', 'P_2.pdf', 'P_3.pdf']


def test_unique_filename_without_extension() -> None:
    assert unique_filename('README', {'README'}) == 'README_2'
