"""Packs a generation artifact into a downloadable Flutter project ZIP.

Layout inside the archive (``<root>`` is the slugified project name)::

    <root>/pubspec.yaml
    <root>/lib/main.dart
    <root>/lib/pages/<page>.dart
    <root>/lib/widgets/<widget>.dart
    <root>/assets/<asset>          empty placeholder per requested asset

Names coming from the model are reduced to a single safe path segment, so an
archive entry can never escape its directory.
"""

import io
import re
import zipfile

from app.schemas.generations import GenerationArtifact

# Fixed entry timestamp keeps archives byte-identical for identical input
_ZIP_DATE = (1980, 1, 1, 0, 0, 0)


def slugify(text: str) -> str:
    """Convert text to a filename-friendly slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s_]+", "-", text).strip("-")
    return text[:100]


def _segment(name: str, suffix: str = "") -> str:
    base = name.replace("\\", "/").split("/")[-1].strip()
    if suffix and base.endswith(suffix):
        base = base[: -len(suffix)]
    if suffix == ".dart":
        # Dart file names are lower_snake_case
        base = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", base).lower()
    base = re.sub(r"[^\w.-]+", "_", base).strip("._")
    return (base or "file") + suffix


def _unique(name: str, used: set[str]) -> str:
    candidate = name
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    i = 2
    while candidate in used:
        candidate = f"{stem}_{i}.{ext}" if ext else f"{stem}_{i}"
        i += 1
    used.add(candidate)
    return candidate


def _write(archive: zipfile.ZipFile, path: str, content: str) -> None:
    info = zipfile.ZipInfo(path, date_time=_ZIP_DATE)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    archive.writestr(info, content)


def archive_entries(artifact: GenerationArtifact) -> dict[str, str]:
    """Map of relative path to file content for ``artifact``."""
    entries = {
        "pubspec.yaml": artifact.pubspec_yaml,
        "lib/main.dart": artifact.main_dart,
    }
    for folder, sources in (("lib/pages", artifact.pages), ("lib/widgets", artifact.widgets)):
        used: set[str] = set()
        for name, content in sources.items():
            entries[f"{folder}/{_unique(_segment(name, '.dart'), used)}"] = content

    used_assets: set[str] = set()
    for asset in artifact.assets:
        entries[f"assets/{_unique(_segment(asset), used_assets)}"] = ""
    return entries


def build_project_archive(project_name: str, artifact: GenerationArtifact) -> bytes:
    root = slugify(project_name) or "flutter-app"
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for path, content in archive_entries(artifact).items():
            _write(archive, f"{root}/{path}", content)
    return buffer.getvalue()
