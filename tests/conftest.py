"""Test configuration and fixtures for IDML Toolkit tests.

The fixtures build small but structurally faithful IDML packages on disk:
a design map, resources, one spread, one master spread, two stories and a
backing story carrying XML markup. All test files should use the fixtures
defined here for consistency.
"""

import pytest
import tempfile
import shutil
import logging
import zipfile
from pathlib import Path
from typing import Callable

from idml_toolkit.config import ConfigManager
from idml_toolkit.core.settings import PackageSettings

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

NS = 'xmlns:idPkg="http://ns.adobe.com/AdobeInDesign/idml/1.0/packaging"'
DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
AID_PI = '<?aid style="50" type="document" readerVersion="6.0" featureSet="257" product="16.0(32)" ?>\n'

MIMETYPE = "application/vnd.adobe.indesign-idml-package"

DESIGN_MAP = DECL + AID_PI + f'''<Document {NS} DOMVersion="16.0" Self="d">
    <Layer Self="ua3" Name="Text" Visible="true"/>
    <Layer Self="ua2" Name="Hidden" Visible="false"/>
    <Layer Self="ua1" Name="Background" Visible="true"/>
    <idPkg:Graphic src="Resources/Graphic.xml"/>
    <idPkg:Fonts src="Resources/Fonts.xml"/>
    <idPkg:Styles src="Resources/Styles.xml"/>
    <idPkg:Preferences src="Resources/Preferences.xml"/>
    <idPkg:Tags src="XML/Tags.xml"/>
    <idPkg:MasterSpread src="MasterSpreads/MasterSpread_ud6.xml"/>
    <idPkg:Spread src="Spreads/Spread_u1.xml"/>
    {{extra}}
    <idPkg:BackingStory src="XML/BackingStory.xml"/>
    <idPkg:Story src="Stories/Story_u12f.xml"/>
    <idPkg:Story src="Stories/Story_u200.xml"/>
</Document>
'''

COMPONENTS = {
    "Resources/Graphic.xml": DECL + f'''<idPkg:Graphic {NS} DOMVersion="16.0">
    <Color Self="Color/Black" Model="Process" Space="CMYK" ColorValue="0 0 0 100"/>
</idPkg:Graphic>
''',
    "Resources/Fonts.xml": DECL + f'''<idPkg:Fonts {NS} DOMVersion="16.0">
    <FontFamily Self="di8f" Name="Minion Pro"/>
</idPkg:Fonts>
''',
    "Resources/Styles.xml": DECL + f'''<idPkg:Styles {NS} DOMVersion="16.0">
    <RootCharacterStyleGroup Self="u77">
        <CharacterStyle Self="u45" Name="Emphasis" PointSize="10">
            <Properties>
                <Leading type="unit">14</Leading>
            </Properties>
        </CharacterStyle>
    </RootCharacterStyleGroup>
    <RootParagraphStyleGroup Self="u78">
        <ParagraphStyle Self="u50" Name="Body" FontStyle="Regular" PointSize="12">
            <Properties>
                <AppliedFont type="string">Minion Pro</AppliedFont>
            </Properties>
        </ParagraphStyle>
    </RootParagraphStyleGroup>
</idPkg:Styles>
''',
    "Resources/Preferences.xml": DECL + f'''<idPkg:Preferences {NS} DOMVersion="16.0">
    <DocumentPreference PageHeight="792" PageWidth="612"/>
</idPkg:Preferences>
''',
    "XML/Tags.xml": DECL + f'''<idPkg:Tags {NS} DOMVersion="16.0">
    <XMLTag Self="XMLTag/Root" Name="Root"/>
    <XMLTag Self="XMLTag/Frame" Name="Frame"/>
</idPkg:Tags>
''',
    "XML/BackingStory.xml": DECL + f'''<idPkg:BackingStory {NS} DOMVersion="16.0">
    <XmlStory Self="ub0">
        <XMLElement Self="di2" MarkupTag="XMLTag/Root">
            <XMLElement Self="di4" MarkupTag="XMLTag/Body+Copy" XMLContent="u12f"/>
            <XMLElement Self="di5" MarkupTag="XMLTag/Frame" XMLContent="u10"/>
            <XMLElement Self="di6" MarkupTag="" XMLContent="u12"/>
            <XMLElement Self="di7" MarkupTag="XMLTag/Sidebar" XMLContent="u200"/>
        </XMLElement>
    </XmlStory>
</idPkg:BackingStory>
''',
    "MasterSpreads/MasterSpread_ud6.xml": DECL + f'''<idPkg:MasterSpread {NS} DOMVersion="16.0">
    <MasterSpread Self="ud6" Name="A-Parent">
        <Page Self="ud7"/>
        <Rectangle Self="dup" Name="master"/>
    </MasterSpread>
</idPkg:MasterSpread>
''',
    "Spreads/Spread_u1.xml": DECL + f'''<idPkg:Spread {NS} DOMVersion="16.0">
    <Spread Self="u1" PageCount="1">
        <Page Self="u5"/>
        <TextFrame Self="u10" ParentStory="u12f" ItemLayer="ua3"/>
        <TextFrame Self="u11" ParentStory="u200" ItemLayer="ua3"/>
        <TextFrame Self="u13" ParentStory="u999" ItemLayer="ua3"/>
        <Rectangle Self="u12"/>
        <Rectangle Self="dup" Name="spread"/>
    </Spread>
</idPkg:Spread>
''',
    "Stories/Story_u12f.xml": DECL + f'''<idPkg:Story {NS} DOMVersion="16.0">
    <Story Self="u12f">
        <ParagraphStyleRange AppliedParagraphStyle="u50" Justification="CenterAlign">
            <CharacterStyleRange Self="csr1" AppliedCharacterStyle="u45">
                <Content>Hello</Content>
            </CharacterStyleRange>
            <CharacterStyleRange Self="csr2" AppliedCharacterStyle="u404" FillColor="Color/Black">
                <Content>world</Content>
            </CharacterStyleRange>
            <CharacterStyleRange Self="csr4">
                <Content>plain</Content>
            </CharacterStyleRange>
        </ParagraphStyleRange>
    </Story>
</idPkg:Story>
''',
    "Stories/Story_u200.xml": DECL + f'''<idPkg:Story {NS} DOMVersion="16.0">
    <Story Self="u200">
        <XMLElement Self="di3" MarkupTag="XMLTag/caption%20text">
            <ParagraphStyleRange AppliedParagraphStyle="u50">
                <CharacterStyleRange Self="csr3">
                    <Content>Caption</Content>
                </CharacterStyleRange>
            </ParagraphStyleRange>
        </XMLElement>
    </Story>
</idPkg:Story>
''',
}


def write_package_dir(directory: Path, *, missing_spread: bool = False) -> Path:
    """Write the sample package files under *directory* and return it.

    With *missing_spread* the design map additionally references
    ``Spreads/Spread_u2.xml``, which is not written.
    """
    extra = '<idPkg:Spread src="Spreads/Spread_u2.xml"/>' if missing_spread else ""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "mimetype").write_text(MIMETYPE, encoding="utf-8")
    (directory / "META-INF").mkdir(exist_ok=True)
    (directory / "designmap.xml").write_text(DESIGN_MAP.format(extra=extra), encoding="utf-8")
    for relative, content in COMPONENTS.items():
        path = directory / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return directory


def zip_package_dir(directory: Path, archive_path: Path) -> Path:
    """Zip *directory* with the standard library only, mimetype first."""
    with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.write(directory / "mimetype", "mimetype", compress_type=zipfile.ZIP_STORED)
        for file_path in sorted(directory.rglob("*")):
            relative = file_path.relative_to(directory).as_posix()
            if file_path.is_dir():
                if not any(file_path.iterdir()):
                    zf.writestr(relative + "/", b"")
            elif relative != "mimetype":
                zf.write(file_path, relative)
    return archive_path


@pytest.fixture
def temp_dir():
    """Creates a temporary directory for test operations."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def package_dir(temp_dir) -> Path:
    """An extracted sample package."""
    return write_package_dir(temp_dir / "sample")


@pytest.fixture
def package_dir_factory(temp_dir) -> Callable[..., Path]:
    """Build extra sample packages: ``factory(name, missing_spread=False)``."""

    def factory(name: str, missing_spread: bool = False) -> Path:
        return write_package_dir(temp_dir / name, missing_spread=missing_spread)

    return factory


@pytest.fixture
def sample_archive(temp_dir) -> Path:
    """A sample ``.idml`` archive in its own folder."""
    source = write_package_dir(temp_dir / "archive_source")
    archive_dir = temp_dir / "archives"
    archive_dir.mkdir()
    return zip_package_dir(source, archive_dir / "sample.idml")


@pytest.fixture
def settings() -> PackageSettings:
    """Default settings, independent of any YAML on the machine."""
    return PackageSettings()


@pytest.fixture(autouse=True)
def isolated_config(temp_dir, monkeypatch):
    """Point user overrides at an empty directory and reset the singleton."""
    config_dir = temp_dir / "user_config"
    config_dir.mkdir()
    monkeypatch.setenv("IDML_TOOLKIT_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


@pytest.fixture
def zip_dir() -> Callable[[Path, Path], Path]:
    """Zip a package directory: ``zip_dir(directory, archive_path)``."""
    return zip_package_dir
