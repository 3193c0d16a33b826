"""Declarative field helpers used in form class bodies.

    class AlbumForm(Form):
        title = Property(str, validates={"presence": True})
        artist = Property(form=ArtistForm)
        songs = Collection(form=SongForm, populate_if_empty=Song)

A declaration only records options; the owning Form class turns it into
a FieldDefinition once the attribute name is known.
"""

from typing import Any

from form_sync.schema.models import FieldDefinition


class Property:
    """A field declaration awaiting its name."""

    def __init__(self, type: Any = None, **options: Any) -> None:
        self.type = type
        self.options = options

    def define(self, name: str) -> FieldDefinition:
        """Build the frozen definition for this declaration."""
        return FieldDefinition(name=name, type=self.type, **self.options)

    def __repr__(self) -> str:
        return f"Property({self.type!r}, **{self.options!r})"


def Collection(form: Any, **options: Any) -> Property:
    """Declare a collection of nested forms."""
    return Property(form=form, collection=True, **options)
