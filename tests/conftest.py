"""Pytest configuration and shared fixtures."""

import itertools
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import pytest

from form_sync import Collection, Form, Property

_save_order = itertools.count(1)


@dataclass
class Artist:
    name: str | None = None
    saved_at: int | None = None

    def save(self) -> None:
        self.saved_at = next(_save_order)


@dataclass
class Song:
    title: str | None = None
    track: int | None = None
    saved_at: int | None = None

    def save(self) -> None:
        self.saved_at = next(_save_order)


@dataclass
class Album:
    title: str | None = None
    released_on: date | None = None
    artist: Artist | None = None
    songs: list[Song] = field(default_factory=list)
    saved_at: int | None = None

    def save(self) -> None:
        self.saved_at = next(_save_order)


class ArtistForm(Form):
    name = Property(str, validates={"presence": True})


class SongForm(Form):
    title = Property(str, validates={"presence": True})
    track = Property(int, validates={"numericality": {"greater_than": 0}})


class AlbumForm(Form):
    title = Property(str, validates={"presence": True})
    released_on = Property(date)
    artist = Property(form=ArtistForm, populate_if_empty=Artist)
    songs = Collection(form=SongForm, populate_if_empty=Song, skip_if="all_blank")


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def schemas_dir(project_root: Path) -> Path:
    """Return the schemas directory."""
    return project_root / "schemas"


@pytest.fixture
def registry_path(project_root: Path) -> Path:
    """Return the form registry path."""
    return project_root / "form-registry"


@pytest.fixture
def form_schema_path(schemas_dir: Path) -> Path:
    """Return the form spec schema path."""
    return schemas_dir / "form_spec.schema.json"


@pytest.fixture
def album() -> Album:
    """An album with an artist and two songs."""
    return Album(
        title="A",
        released_on=date(2020, 5, 1),
        artist=Artist(name="B"),
        songs=[Song(title="Intro", track=1), Song(title="Outro", track=2)],
    )


@pytest.fixture
def album_form(album: Album) -> AlbumForm:
    """An AlbumForm bound to the album fixture."""
    return AlbumForm(album)
