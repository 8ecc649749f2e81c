"""Per-site field schema registry.

This module loads the YAML description of each campus's form fields and
the raw-answer to canonical-label table. The document is validated once at
load time: structural problems raise, overlapping entries become warnings.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Hashable, Mapping, Sequence, cast

import yaml

from core.constants import DEFAULT_SITE_SCHEMA_PATH, SUPPORTED_SITE_SCHEMA_VERSIONS
from core.errors import FarmoreSchemaError
from core.logging_config import get_logger
from core.types import SUPPORTED_STEP_KINDS, Site, StepKind

_LOGGER = get_logger(__name__)
_IDENTITY_KEYS = ("first_name", "last_name", "email", "phone", "site", "step")
_SITE_KEYS = {
    "population",
    "population_estimated",
    "attend_field",
    "own_field",
    "commit_field",
    "serve_fields",
}
_ROOT_KEYS = {"version", "identity_fields", "step_labels", "sites", "labels", "involvement_events"}


class _UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that rejects a mapping key repeated within one mapping."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen_keys: set[Hashable] = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                continue
            if key in seen_keys:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen_keys.add(key)
        return super().construct_mapping(node, deep=deep)


@dataclass(frozen=True)
class IdentityFields:
    """Fixed field keys shared by every campus."""

    first_name: str
    last_name: str
    email: str
    phone: str
    site: str
    step: str


class FieldSchemaRegistry:
    """Static lookups from campus and step to source fields."""

    def __init__(
        self,
        identity_fields: IdentityFields,
        step_labels: Mapping[str, StepKind],
        sites: Sequence[Site],
        label_table: Mapping[str, str],
        involvement_events: Mapping[str, str],
        warnings: Sequence[str] = (),
    ) -> None:
        self._identity_fields = identity_fields
        self._step_labels = dict(step_labels)
        self._sites = {site.key: site for site in sites}
        self._label_table = dict(label_table)
        self._involvement_events = dict(involvement_events)
        self._warnings = tuple(warnings)

    @property
    def identity_fields(self) -> IdentityFields:
        return self._identity_fields

    @property
    def sites(self) -> tuple[Site, ...]:
        return tuple(self._sites.values())

    @property
    def involvement_events(self) -> Mapping[str, str]:
        """Dashboard event name to the campus key it reports."""
        return dict(self._involvement_events)

    @property
    def warnings(self) -> tuple[str, ...]:
        """Validation warnings collected while loading the document."""
        return self._warnings

    def site(self, site_key: str | None) -> Site | None:
        if site_key is None:
            return None
        return self._sites.get(site_key)

    def step_kind(self, step_label: str | None) -> StepKind | None:
        """Resolve a raw step answer, or None when unrecognized."""
        if step_label is None:
            return None
        return self._step_labels.get(step_label)

    def field_for_step(self, site_key: str | None, step: StepKind) -> str | None:
        """Return the single field holding a step answer for a campus.

        Args:
            site_key: Campus key from the entry.
            step: One of attend, own, or commit.

        Returns:
            Source field key, or None when the campus or step has no field.
        """
        site = self.site(site_key)
        if site is None:
            return None
        if step == "attend":
            return site.attend_field
        if step == "own":
            return site.own_field
        if step == "commit":
            return site.commit_field
        return None

    def serve_fields(self, site_key: str | None) -> tuple[str, ...]:
        site = self.site(site_key)
        if site is None:
            return ()
        return site.serve_fields

    def normalize_label(self, raw_value: str | None) -> str | None:
        """Map a raw answer onto its canonical label; unmapped answers give None."""
        if raw_value is None:
            return None
        return self._label_table.get(raw_value)

    def population(self, site_key: str) -> int | None:
        site = self.site(site_key)
        if site is None:
            return None
        return site.population

    def total_population(self) -> int:
        """Sum populations over every known campus."""
        return sum(site.population or 0 for site in self._sites.values())


def load_field_schema(schema_path: Path | str | None = None) -> FieldSchemaRegistry:
    """Load and validate a site schema document.

    Args:
        schema_path: YAML path; the bundled document when omitted.

    Returns:
        Registry built from the document.

    Raises:
        FarmoreSchemaError: If the file is unreadable or structurally invalid.
    """
    resolved_path = Path(schema_path or DEFAULT_SITE_SCHEMA_PATH).expanduser().resolve()
    payload = _load_yaml_payload(resolved_path)
    registry = build_field_schema(payload)
    for warning in registry.warnings:
        _LOGGER.warning("site_schema_warning", schema_path=str(resolved_path), detail=warning)
    return registry


def build_field_schema(payload: object) -> FieldSchemaRegistry:
    """Build a registry from an already-parsed schema document.

    Args:
        payload: Parsed YAML root object.

    Returns:
        Validated registry.

    Raises:
        FarmoreSchemaError: If required sections are missing or malformed.
    """
    root_mapping = _expect_mapping(payload, "site schema root")
    _validate_keys(root_mapping, _ROOT_KEYS, "site schema root")
    _parse_version(root_mapping)
    warnings: list[str] = []
    identity_fields = _parse_identity_fields(root_mapping.get("identity_fields"))
    step_labels = _parse_step_labels(root_mapping.get("step_labels"))
    sites = _parse_sites(root_mapping.get("sites"), warnings)
    label_table = _parse_label_table(root_mapping.get("labels"), warnings)
    involvement_events = _parse_involvement_events(
        root_mapping.get("involvement_events"), sites, warnings
    )
    _collect_shared_field_warnings(sites, warnings)
    return FieldSchemaRegistry(
        identity_fields=identity_fields,
        step_labels=step_labels,
        sites=sites,
        label_table=label_table,
        involvement_events=involvement_events,
        warnings=warnings,
    )


def _load_yaml_payload(schema_path: Path) -> object:
    if not schema_path.exists():
        raise FarmoreSchemaError(
            f"Site schema file does not exist at {schema_path}. "
            "Set FARMORE_SITE_SCHEMA to a valid YAML file."
        )
    try:
        document = schema_path.read_text(encoding="utf-8")
        payload = cast(object, yaml.load(document, Loader=_UniqueKeyLoader))
    except OSError as error:
        raise FarmoreSchemaError(
            f"Failed to read site schema at {schema_path}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise FarmoreSchemaError(
            f"Failed to parse site schema at {schema_path}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise FarmoreSchemaError(f"Site schema at {schema_path} is empty.")
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise FarmoreSchemaError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise FarmoreSchemaError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise FarmoreSchemaError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _expect_string(value: object, context: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise FarmoreSchemaError(f"Invalid {context}: expected non-empty string.")


def _optional_string(mapping: Mapping[str, object], field_name: str, context: str) -> str | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    return _expect_string(raw_value, f"{context} field '{field_name}'")


def _validate_keys(mapping: Mapping[str, object], allowed_keys: set[str], context: str) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise FarmoreSchemaError(f"{context} contains unknown fields: {', '.join(unknown_keys)}.")


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise FarmoreSchemaError("Site schema field 'version' must be an integer. Set version: 1.")
    if raw_version not in SUPPORTED_SITE_SCHEMA_VERSIONS:
        raise FarmoreSchemaError(f"Unsupported site schema version {raw_version}. Use version: 1.")
    return raw_version


def _parse_identity_fields(raw_value: object) -> IdentityFields:
    identity_mapping = _expect_mapping(raw_value, "identity_fields")
    _validate_keys(identity_mapping, set(_IDENTITY_KEYS), "identity_fields")
    missing_keys = [key for key in _IDENTITY_KEYS if key not in identity_mapping]
    if missing_keys:
        raise FarmoreSchemaError(
            f"identity_fields is missing required keys: {', '.join(missing_keys)}."
        )
    parsed = {
        key: _expect_string(identity_mapping[key], f"identity_fields.{key}")
        for key in _IDENTITY_KEYS
    }
    return IdentityFields(**parsed)


def _parse_step_labels(raw_value: object) -> dict[str, StepKind]:
    label_mapping = _expect_mapping(raw_value, "step_labels")
    step_labels: dict[str, StepKind] = {}
    for raw_label, raw_kind in label_mapping.items():
        if raw_kind not in SUPPORTED_STEP_KINDS:
            supported = ", ".join(SUPPORTED_STEP_KINDS)
            raise FarmoreSchemaError(
                f"Unsupported step kind '{raw_kind}' for step label '{raw_label}'. "
                f"Use one of: {supported}."
            )
        step_labels[raw_label] = cast(StepKind, raw_kind)
    return step_labels


def _parse_sites(raw_value: object, warnings: list[str]) -> list[Site]:
    sites_mapping = _expect_mapping(raw_value, "sites")
    if not sites_mapping:
        raise FarmoreSchemaError("Site schema must define at least one site.")
    return [
        _parse_site(site_key, site_value, warnings)
        for site_key, site_value in sites_mapping.items()
    ]


def _parse_site(site_key: str, raw_value: object, warnings: list[str]) -> Site:
    context = f"site '{site_key}'"
    site_mapping = _expect_mapping(raw_value, context)
    _validate_keys(site_mapping, _SITE_KEYS, context)
    population = _parse_population(site_mapping.get("population"), context)
    estimated = bool(site_mapping.get("population_estimated", False))
    if population is None:
        warnings.append(f"{context} has no population; its involvement is reported as 0")
    elif estimated:
        warnings.append(f"{context} population {population} is an estimate")
    serve_fields = tuple(
        _expect_string(value, f"{context} serve field")
        for value in _expect_sequence(site_mapping.get("serve_fields", []), f"{context} serve_fields")
    )
    duplicated = sorted({key for key in serve_fields if serve_fields.count(key) > 1})
    if duplicated:
        warnings.append(f"{context} lists serve fields more than once: {', '.join(duplicated)}")
    return Site(
        key=site_key,
        population=population,
        population_estimated=estimated,
        attend_field=_optional_string(site_mapping, "attend_field", context),
        own_field=_optional_string(site_mapping, "own_field", context),
        commit_field=_optional_string(site_mapping, "commit_field", context),
        serve_fields=serve_fields,
    )


def _parse_population(raw_value: object, context: str) -> int | None:
    if raw_value is None:
        return None
    if not isinstance(raw_value, int) or isinstance(raw_value, bool) or raw_value < 0:
        raise FarmoreSchemaError(
            f"Invalid {context} population: expected non-negative integer, got {raw_value!r}."
        )
    return raw_value


def _parse_label_table(raw_value: object, warnings: list[str]) -> dict[str, str]:
    label_mapping = _expect_mapping(raw_value, "labels")
    label_table: dict[str, str] = {}
    for canonical_label, raw_answers in label_mapping.items():
        answers = _expect_sequence(raw_answers, f"labels '{canonical_label}'")
        for raw_answer in answers:
            answer = _expect_string(raw_answer, f"labels '{canonical_label}' answer")
            existing_label = label_table.get(answer)
            if existing_label is None:
                label_table[answer] = canonical_label
                continue
            warnings.append(
                f"raw label '{answer}' listed under '{existing_label}' and "
                f"'{canonical_label}'; keeping '{existing_label}'"
            )
    return label_table


def _parse_involvement_events(
    raw_value: object,
    sites: list[Site],
    warnings: list[str],
) -> dict[str, str]:
    if raw_value is None:
        return {}
    events_mapping = _expect_mapping(raw_value, "involvement_events")
    site_keys = {site.key for site in sites}
    involvement_events: dict[str, str] = {}
    for event_name, raw_site in events_mapping.items():
        site_key = _expect_string(raw_site, f"involvement_events.{event_name}")
        if site_key not in site_keys:
            warnings.append(
                f"involvement event '{event_name}' names unknown site '{site_key}'; it will report 0"
            )
        involvement_events[event_name] = site_key
    return involvement_events


def _collect_shared_field_warnings(sites: list[Site], warnings: list[str]) -> None:
    """Flag single-answer fields that two campuses both claim for one step."""
    for step_name in ("attend_field", "own_field", "commit_field"):
        owners: dict[str, str] = {}
        for site in sites:
            field_key = getattr(site, step_name)
            if field_key is None:
                continue
            first_owner = owners.setdefault(field_key, site.key)
            if first_owner != site.key:
                warnings.append(
                    f"{step_name} '{field_key}' is shared by sites '{first_owner}' and '{site.key}'"
                )
