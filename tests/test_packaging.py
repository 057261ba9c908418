import io
import zipfile

from app.schemas.generations import GenerationArtifact
from app.services.packaging import archive_entries, build_project_archive, slugify
from tests.conftest import SAMPLE_ARTIFACT


def test_slugify():
    assert slugify("  My Plant Shop! ") == "my-plant-shop"
    assert slugify("Café__Menu") == "café-menu"
    assert slugify("!!!") == ""


def test_archive_layout():
    entries = archive_entries(SAMPLE_ARTIFACT)

    assert set(entries) == {
        "pubspec.yaml",
        "lib/main.dart",
        "lib/pages/home_page.dart",
        "lib/pages/cart_page.dart",
        "lib/widgets/product_card.dart",
        "assets/logo.png",
    }
    assert entries["lib/widgets/product_card.dart"] == "class ProductCard {}"
    assert entries["assets/logo.png"] == ""


def test_hostile_names_stay_inside_their_folder():
    artifact = GenerationArtifact(
        main_dart="",
        pubspec_yaml="",
        pages={"../../etc/passwd": "x", "/abs/Home.dart": "y"},
        widgets={"..": "z"},
        assets=["../secret.env", "C:\\temp\\icon.png"],
    )

    paths = set(archive_entries(artifact))

    assert paths == {
        "pubspec.yaml",
        "lib/main.dart",
        "lib/pages/passwd.dart",
        "lib/pages/home.dart",
        "lib/widgets/file.dart",
        "assets/secret.env",
        "assets/icon.png",
    }


def test_colliding_names_are_suffixed():
    artifact = GenerationArtifact(
        main_dart="", pubspec_yaml="", pages={"HomePage": "a", "home_page": "b"}, assets=["a.png", "a.png"]
    )

    entries = archive_entries(artifact)

    assert entries["lib/pages/home_page.dart"] == "a"
    assert entries["lib/pages/home_page_2.dart"] == "b"
    assert "assets/a_2.png" in entries


def test_archive_is_deterministic_and_rooted():
    first = build_project_archive("Plant Shop", SAMPLE_ARTIFACT)
    second = build_project_archive("Plant Shop", SAMPLE_ARTIFACT)

    assert first == second
    with zipfile.ZipFile(io.BytesIO(first)) as archive:
        assert all(name.startswith("plant-shop/") for name in archive.namelist())
        assert archive.read("plant-shop/pubspec.yaml").decode() == SAMPLE_ARTIFACT.pubspec_yaml


def test_unnamed_project_gets_default_root():
    with zipfile.ZipFile(io.BytesIO(build_project_archive("???", SAMPLE_ARTIFACT))) as archive:
        assert archive.namelist()[0].startswith("flutter-app/")
