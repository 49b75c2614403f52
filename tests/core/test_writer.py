import zipfile

import pytest

from idml_toolkit.core.exceptions import InvalidArgumentError
from idml_toolkit.core.loader import PackageLoader
from idml_toolkit.core.models import PackageRole
from idml_toolkit.core.settings import PackageSettings
from idml_toolkit.core.store import DocumentStore
from idml_toolkit.core.writer import SAVE_ORDER, PackageWriter


@pytest.fixture
def store(package_dir, settings):
    store = DocumentStore()
    PackageLoader(store, settings).load(package_dir)
    return store


class TestPackageWriter:
    """Test cases for writing documents back to disk."""

    def test_save_document_writes_mutation(self, store, package_dir, settings):
        """Test that an in-place edit reaches the document's file."""
        story = store.get_multi(PackageRole.STORY, "u12f")
        story.root.find(".//Content").text = "Goodbye"
        PackageWriter(store, settings).save_document(story)

        text = (package_dir / "Stories" / "Story_u12f.xml").read_text(encoding="utf-8")
        assert "<Content>Goodbye</Content>" in text
        assert "standalone='yes'" in text

    def test_save_design_map_keeps_processing_instruction(self, store, package_dir, settings):
        """Test that the aid processing instruction survives a save."""
        PackageWriter(store, settings).save_design_map()
        text = (package_dir / "designmap.xml").read_text(encoding="utf-8")
        assert "<?aid " in text
        assert "idPkg:Story" in text

    def test_save_design_map_requires_load(self, settings):
        """Test that saving an unloaded design map is refused."""
        with pytest.raises(InvalidArgumentError):
            PackageWriter(DocumentStore(), settings).save_design_map()

    def test_save_collection_counts(self, store, settings):
        """Test that a collection save writes every member."""
        assert PackageWriter(store, settings).save_collection(PackageRole.STORY) == 2

    def test_compact_output(self, store, package_dir):
        """Test that pretty printing can be switched off."""
        writer = PackageWriter(store, PackageSettings(pretty_print=False))
        writer.save_document(store.get_single(PackageRole.TAGS))
        text = (package_dir / "XML" / "Tags.xml").read_text(encoding="utf-8")
        assert "\n  <XMLTag" not in text

    def test_save_all_without_archive(self, store, package_dir, settings):
        """Test that save_all writes documents and returns no archive."""
        assert PackageWriter(store, settings).save_all(package_dir) is None

    def test_save_all_with_archive(self, store, package_dir, temp_dir, settings):
        """Test that save_all re-archives the working directory when asked."""
        target = temp_dir / "saved.idml"
        written = PackageWriter(store, settings).save_all(package_dir, target)

        assert written == target.resolve()
        with zipfile.ZipFile(written) as zf:
            assert "Stories/Story_u200.xml" in zf.namelist()

    def test_save_all_archive_needs_directory(self, store, temp_dir, settings):
        """Test that an archive target without a directory is refused."""
        with pytest.raises(InvalidArgumentError):
            PackageWriter(store, settings).save_all(None, temp_dir / "saved.idml")

    def test_save_all_order(self, store, package_dir, settings, monkeypatch):
        """Test that the design map is written first and single documents last."""
        written = []
        original = PackageWriter.save_document

        def recording(writer, document):
            written.append(document)
            original(writer, document)

        monkeypatch.setattr(PackageWriter, "save_document", recording)
        PackageWriter(store, settings).save_all(package_dir)

        expected = [store.design_map]
        for role in SAVE_ORDER:
            expected.extend(store.iter_multi(role))
        expected.extend(document for _role, document in store.iter_singles())
        assert written == expected
        assert written[0] is store.design_map
        assert [doc.role_name for doc in written[1:5]] == ["Story", "Story", "MasterSpread", "Spread"]
