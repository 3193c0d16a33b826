"""Tests for field schema declaration."""

import pytest

from conftest import AlbumForm, ArtistForm
from form_sync import Collection, FieldDefinition, Form, FormDefinitionError, FormSchema, Property


class TestDeclaration:
    """Tests for declaring fields on form classes."""

    def test_fields_in_declaration_order(self) -> None:
        """Test that the schema keeps declaration order."""
        assert AlbumForm.schema.names == ["title", "released_on", "artist", "songs"]

    def test_class_access_returns_definition(self) -> None:
        """Test that a field accessed on the class is its definition."""
        definition = AlbumForm.title
        assert isinstance(definition, FieldDefinition)
        assert definition.validates == {"presence": True}

    def test_nested_and_collection_flags(self) -> None:
        """Test nested and collection fields."""
        assert AlbumForm.schema.get("artist").form is ArtistForm
        assert AlbumForm.schema.get("artist").collection is False
        assert AlbumForm.schema.get("songs").collection is True
        assert [f.name for f in AlbumForm.schema.nested()] == ["artist", "songs"]

    def test_inline_nested_form(self) -> None:
        """Test that a dict of properties builds a nested form class."""

        class LabelForm(Form):
            address = Property(form={"city": Property(str), "zip": Property(str)})

        nested = LabelForm.schema.get("address").form
        assert issubclass(nested, Form)
        assert nested.schema.names == ["city", "zip"]

    def test_subclass_inherits_and_overrides(self) -> None:
        """Test inheritance with last-write-wins override."""

        class StrictAlbumForm(AlbumForm):
            title = Property(str, validates={"presence": True, "length": {"minimum": 3}})
            label = Property(str)

        assert StrictAlbumForm.schema.names == ["title", "released_on", "artist", "songs", "label"]
        assert "length" in StrictAlbumForm.schema.get("title").validates
        # Parent schema is untouched
        assert "length" not in AlbumForm.schema.get("title").validates
        assert "label" not in AlbumForm.schema

    def test_declare_after_class_creation(self) -> None:
        """Test dynamic declaration and redeclaration."""

        class NoteForm(Form):
            body = Property(str)

        NoteForm.declare("author", str)
        NoteForm.declare("body", int)

        assert NoteForm.schema.names == ["body", "author"]
        assert NoteForm.schema.get("body").type is int

    def test_definitions_are_frozen(self) -> None:
        """Test that field definitions cannot be changed after definition."""
        definition = AlbumForm.schema.get("title")
        with pytest.raises(Exception):
            definition.name = "renamed"


class TestDeclarationErrors:
    """Tests for invalid declarations."""

    def test_reserved_name(self) -> None:
        """Test that Form API names cannot be fields."""
        with pytest.raises(FormDefinitionError, match="errors"):

            class BadForm(Form):
                errors = Property(str)

    def test_unknown_coercion_type(self) -> None:
        """Test that an unknown type name fails at definition time."""
        with pytest.raises(FormDefinitionError, match="Unknown coercion type"):

            class BadForm(Form):
                title = Property("text")

    def test_collection_without_form(self) -> None:
        """Test that a collection needs a nested form."""
        with pytest.raises(FormDefinitionError, match="nested form"):
            FieldDefinition(name="songs", collection=True)

    def test_nested_form_must_be_form(self) -> None:
        """Test that form= rejects arbitrary classes."""
        with pytest.raises(FormDefinitionError, match="Form subclass"):

            class BadForm(Form):
                artist = Property(form=dict)

    def test_unknown_validation_rule(self) -> None:
        """Test that unknown rules fail at definition time."""
        with pytest.raises(FormDefinitionError, match="unknown validation rules"):

            class BadForm(Form):
                title = Property(str, validates={"uniqueness": True})

    def test_unknown_skip_if(self) -> None:
        """Test that only all_blank is a named skip strategy."""
        with pytest.raises(FormDefinitionError, match="skip_if"):
            Collection(form=ArtistForm, skip_if="any_blank").define("artists")

    def test_class_body_declarations_use_define(self) -> None:
        """Test that a class body declaration fails the same way as define()."""
        with pytest.raises(FormDefinitionError, match="skip_if"):

            class BadForm(Form):
                artists = Collection(form=ArtistForm, skip_if="any_blank")


class TestFormSchema:
    """Tests for the FormSchema container."""

    def test_add_replaces_same_name(self) -> None:
        """Test last-write-wins on add."""
        schema = FormSchema()
        schema.add(FieldDefinition(name="title", type=str))
        schema.add(FieldDefinition(name="title", type=int))

        assert len(schema) == 1
        assert schema.get("title").type is int

    def test_copy_is_independent(self) -> None:
        """Test that a copy can diverge from its source."""
        schema = FormSchema()
        schema.add(FieldDefinition(name="title"))
        copy = schema.copy()
        copy.add(FieldDefinition(name="label"))

        assert "label" in copy
        assert "label" not in schema

    def test_attribute_and_default(self) -> None:
        """Test from_ and default helpers."""
        definition = FieldDefinition(name="title", from_="name", default=list)

        assert definition.attribute == "name"
        assert definition.get_default() == []
        assert FieldDefinition(name="x").get_default() is None
