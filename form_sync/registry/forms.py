"""Form registry for loading, caching and building form specifications."""

import json
import logging
import re
from pathlib import Path
from typing import Any

import jsonschema

from form_sync.form.form import Form, build_form_class
from form_sync.registry.models import FieldSpec, FormSpec
from form_sync.schema.declaration import Property

logger = logging.getLogger(__name__)


class FormNotFoundError(Exception):
    """Raised when a form specification is not found."""

    pass


class FormSpecValidationError(Exception):
    """Raised when a form specification fails validation."""

    pass


def _version_key(version: str) -> list[tuple[int, int | str]]:
    return [(0, int(p)) if p.isdigit() else (1, p) for p in version.split(".")]


def class_name_for(form_id: str) -> str:
    """Derive a class name from a form id (contact_intake -> ContactIntakeForm)."""
    parts = [part for part in re.split(r"[^A-Za-z0-9]+", form_id) if part]
    return "".join(part[:1].upper() + part[1:] for part in parts) + "Form"


def declaration_for(field: FieldSpec, owner: str) -> Property:
    """Turn a field spec into a Property declaration."""
    options: dict[str, Any] = {
        "validates": field.validates,
        "collection": field.collection,
        "virtual": field.virtual,
        "readable": field.readable,
        "writeable": field.writeable,
        "from_": field.from_,
        "on": field.on,
        "wire": field.wire,
        "save": field.save,
        "skip_if": field.skip_if,
    }
    if "default" in field.model_fields_set:
        options["default"] = field.default
    if field.nested:
        child_name = f"{owner}_{field.name}"
        options["form"] = build_form_class(
            child_name,
            {child.name: declaration_for(child, child_name) for child in field.fields or []},
        )
    return Property(field.type, **options)


def build_form(spec: FormSpec) -> type[Form]:
    """Build a Form subclass from a form spec."""
    name = class_name_for(spec.form_id)
    return build_form_class(
        name,
        {field.name: declaration_for(field, name) for field in spec.fields},
    )


class FormRegistry:
    """Registry for loading and caching form specifications.

    Loads form specs from a directory structure:
        <registry_path>/forms/<form_id>/<version>.json

    Where version uses dashes instead of dots (e.g., 1-0-0.json for 1.0.0).
    """

    def __init__(
        self,
        registry_path: Path | str,
        schema_path: Path | str | None = None,
    ) -> None:
        """Initialize the form registry.

        Args:
            registry_path: Path to the form registry directory.
            schema_path: Optional path to the form_spec schema for validation.
        """
        self.registry_path = Path(registry_path)
        self.forms_path = self.registry_path / "forms"
        self._cache: dict[tuple[str, str], FormSpec] = {}
        self._classes: dict[tuple[str, str], type[Form]] = {}
        self._schema: dict | None = None

        if schema_path:
            with open(schema_path) as f:
                self._schema = json.load(f)

    def _version_to_filename(self, version: str) -> str:
        """Convert version string to filename (1.0.0 -> 1-0-0.json)."""
        return version.replace(".", "-") + ".json"

    def _get_spec_path(self, form_id: str, version: str) -> Path:
        return self.forms_path / form_id / self._version_to_filename(version)

    def get(self, form_id: str, version: str) -> FormSpec:
        """Get a form specification by ID and version.

        Raises:
            FormNotFoundError: If the spec file doesn't exist.
            FormSpecValidationError: If the spec fails schema validation.
        """
        cache_key = (form_id, version)
        if cache_key in self._cache:
            return self._cache[cache_key]

        spec_path = self._get_spec_path(form_id, version)
        if not spec_path.exists():
            raise FormNotFoundError(
                f"Form spec not found: {form_id}@{version} (expected at {spec_path})"
            )

        with open(spec_path) as f:
            data = json.load(f)

        if self._schema:
            try:
                jsonschema.validate(data, self._schema)
            except jsonschema.ValidationError as e:
                raise FormSpecValidationError(
                    f"Form spec validation failed for {form_id}@{version}: {e.message}"
                ) from e

        spec = FormSpec.model_validate(data)
        logger.debug("Loaded form spec %s@%s from %s", form_id, version, spec_path)
        self._cache[cache_key] = spec
        return spec

    def list_forms(self) -> list[str]:
        """List all available form IDs."""
        if not self.forms_path.exists():
            return []
        return sorted(d.name for d in self.forms_path.iterdir() if d.is_dir())

    def list_versions(self, form_id: str) -> list[str]:
        """List all available versions for a form, oldest first."""
        form_path = self.forms_path / form_id
        if not form_path.exists():
            return []
        versions = [f.stem.replace("-", ".") for f in form_path.glob("*.json")]
        return sorted(versions, key=_version_key)

    def get_latest(self, form_id: str) -> FormSpec:
        """Get the latest version of a form.

        Raises:
            FormNotFoundError: If no versions exist.
        """
        versions = self.list_versions(form_id)
        if not versions:
            raise FormNotFoundError(f"No versions found for form: {form_id}")
        return self.get(form_id, versions[-1])

    def build(self, form_id: str, version: str | None = None) -> type[Form]:
        """Build (and cache) the Form class for a spec."""
        spec = self.get(form_id, version) if version else self.get_latest(form_id)
        cache_key = (spec.form_id, spec.version)
        if cache_key not in self._classes:
            self._classes[cache_key] = build_form(spec)
        return self._classes[cache_key]
