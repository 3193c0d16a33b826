"""Tests for the persistence trigger."""

from types import SimpleNamespace

import pytest

from conftest import Album, AlbumForm, Artist, ArtistForm, Song, SongForm
from form_sync import Collection, Form, MissingAccessorError, Property


class TestSave:
    """Tests for Form.save without a block."""

    def test_syncs_then_saves_every_model(self, album: Album, album_form: AlbumForm) -> None:
        """Test that save writes values and persists the graph."""
        album_form.validate({"title": "C", "songs": [{"title": "One"}]})

        assert album_form.save() is True

        assert album.title == "C"
        assert album.songs[0].title == "One"
        assert album.saved_at is not None
        assert album.artist.saved_at is not None
        assert all(song.saved_at is not None for song in album.songs)

    def test_children_saved_before_parent(self, album: Album, album_form: AlbumForm) -> None:
        """Test the save order of the graph."""
        album_form.save()

        intro, outro = album.songs
        assert album.artist.saved_at < intro.saved_at < outro.saved_at < album.saved_at

    def test_new_children_are_saved(self) -> None:
        """Test that models created during validate are persisted too."""
        album = Album(title="A")
        form = AlbumForm(album)
        form.validate({"artist": {"name": "New"}, "songs": [{"title": "Fresh", "track": "1"}]})

        form.save()

        assert album.artist.saved_at is not None
        assert album.songs[0].saved_at is not None

    def test_shared_model_saved_once(self) -> None:
        """Test that a model bound under two roles is saved once."""
        saves = []

        class Recorder(SimpleNamespace):
            def save(self) -> None:
                saves.append(self)

        class ComposedForm(Form):
            title = Property(str, on="album")
            name = Property(str, on="artist")

        shared = Recorder(title="A", name="B")
        ComposedForm(album=shared, artist=shared).save()

        assert saves == [shared]

    def test_save_false_skips_children(self) -> None:
        """Test save=False syncs a nested form without persisting it."""

        class DraftAlbumForm(Form):
            title = Property(str)
            artist = Property(form=ArtistForm, save=False)

        album = Album(title="A", artist=Artist(name="B"))
        form = DraftAlbumForm(album)
        form.validate({"artist": {"name": "C"}})
        form.save()

        assert album.artist.name == "C"
        assert album.artist.saved_at is None
        assert album.saved_at is not None

    def test_mapping_models_are_skipped(self) -> None:
        """Test that dict models have nothing to save."""
        model = {"title": "A", "released_on": None, "artist": None, "songs": []}

        assert AlbumForm(model).save() is True

    def test_model_without_save(self) -> None:
        """Test that a model lacking save() is reported."""

        class NoteForm(Form):
            body = Property(str)

        with pytest.raises(MissingAccessorError, match="save"):
            NoteForm(SimpleNamespace(body="x")).save()

    def test_missing_setter_prevents_save(self) -> None:
        """Test that a failed preflight persists nothing."""

        class TitleOnly:
            @property
            def title(self) -> str:
                return "Fixed"

            def save(self) -> None:
                raise AssertionError("must not be saved")

        class TitleForm(Form):
            title = Property(str)

        with pytest.raises(MissingAccessorError):
            TitleForm(TitleOnly()).save()


class TestSaveWithBlock:
    """Tests for Form.save with a block."""

    def test_block_receives_nested_hash(self, album: Album, album_form: AlbumForm) -> None:
        """Test that the block gets plain data and replaces the default save."""
        received = {}

        def block(data):
            received.update(data)
            return "handled"

        album_form.validate({"title": "C"})

        assert album_form.save(block) == "handled"

        assert received["title"] == "C"
        assert received["artist"] == {"name": "B"}
        assert [song["title"] for song in received["songs"]] == ["Intro", "Outro"]
        assert album.title == "C"
        assert album.saved_at is None

    def test_block_on_nested_collection(self) -> None:
        """Test block data for a collection-only form."""

        class TracklistForm(Form):
            songs = Collection(form=SongForm, populate_if_empty=Song)

        album = Album(songs=[Song(title="Intro", track=1)])
        data = TracklistForm(album).save(lambda nested: nested)

        assert data == {"songs": [{"title": "Intro", "track": 1}]}
