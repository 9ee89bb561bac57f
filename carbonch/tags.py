"""Graphite tagged-metric normalisation and plain-to-tagged conversion."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from carbonch.escape import path, query


@dataclass
class TemplateDesc:
    """A compiled conversion template: filter, path layout and extra tags."""

    filter: re.Pattern
    template: list[str]
    extra_tags: dict[str, str] = field(default_factory=dict)


def _make_regexp(filter_text: str) -> re.Pattern:
    if not filter_text:
        return re.compile(r"\.")
    begin, end = "^", r"\Z"
    if filter_text.startswith("*"):
        begin = ""
        filter_text = filter_text[1:]
    if filter_text.endswith("*"):
        end = ""
        filter_text = filter_text[:-1]
    pattern = begin + filter_text.replace(".", "\\.").replace("*", "[^\\.]*") + end
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"invalid template filter {filter_text!r}: {exc}") from None


def _make_tag_map(tags: list[str]) -> dict[str, str]:
    result: dict[str, str] = {}
    if not tags or tags[0] == "":
        return result
    for tag in tags:
        parts = tag.split("=")
        if len(parts) < 2:
            raise ValueError(f"invalid tag {tag!r}, no '='")
        result[parts[0]] = parts[1]
    return result


@dataclass
class TagConfig:
    """Settings for converting plain graphite paths to tagged series."""

    enabled: bool = False
    separator: str = ""
    tags: list[str] = field(default_factory=list)
    templates: list[str] = field(default_factory=list)
    tag_map: dict[str, str] = field(default_factory=dict, repr=False)
    template_descs: list[TemplateDesc] = field(default_factory=list, repr=False)

    def configure(self) -> None:
        """Build the tag map and compile the templates."""
        self.tag_map = _make_tag_map(self.tags)
        descs = []
        for line in self.templates:
            tokens = [token.strip() for token in line.split(" ") if token.strip()]
            if len(tokens) > 3 or not tokens:
                raise ValueError("wrong template format")
            filter_text = template = tags = ""
            if len(tokens) == 2:
                if "=" in tokens[1]:
                    template, tags = tokens
                else:
                    filter_text, template = tokens
            elif len(tokens) == 3:
                filter_text, template, tags = tokens
            else:
                template = tokens[0]
            descs.append(
                TemplateDesc(
                    filter=_make_regexp(filter_text),
                    template=template.split("."),
                    extra_tags=_make_tag_map(tags.split(",")),
                )
            )
        self.template_descs = descs

    def to_graphite_tagged(self, s: str) -> str:
        """Convert a plain path with the first matching template.

        Returns an empty string when no template applies.
        """
        for desc in self.template_descs:
            if not desc.filter.search(s):
                continue

            tag_map = {**self.tag_map, **desc.extra_tags}
            names = s.split(".")
            template = desc.template
            if (
                len(names) != len(template) and not template[-1].endswith("*")
            ) or len(names) < len(template):
                continue

            measurement = ""
            for i, name in enumerate(names):
                if i >= len(template):
                    break
                part = template[i]
                if part == "":
                    continue
                if part == "measurement":
                    measurement += name + self.separator
                elif part == "measurement*":
                    measurement += self.separator.join(names[i:])
                    break
                elif part in tag_map:
                    tag_map[part] = tag_map[part] + self.separator + name
                else:
                    tag_map[part] = name

            if measurement.endswith("_"):
                measurement = measurement[:-1]

            return measurement + "".join(f";{k}={v}" for k, v in tag_map.items())
        return ""


def disabled_tag_config() -> TagConfig:
    """Return a configuration with conversion switched off."""
    return TagConfig(enabled=False)


def _parse_tags(tail: str) -> dict[str, str]:
    segments = tail.split(";")
    result: dict[str, str] = {}
    for i, seg in enumerate(segments):
        if seg == "" and i < len(segments) - 1:
            raise ValueError(f"cannot parse path '{tail}', empty segment")
        kpos = seg.find("=")
        if kpos < 1:
            raise ValueError(
                f"cannot parse path '{tail}', invalid segment '{seg}', no '='"
            )
        # later values of a repeated key win
        result[seg[:kpos]] = seg[kpos + 1:]
    return result


def graphite(config: TagConfig, s: str) -> str:
    """Normalise ``name;k=v;...`` into ``name?k=v&...`` with sorted, unique tags."""
    if config.enabled and ";" not in s:
        s = config.to_graphite_tagged(s)

    name, sep, tail = s.partition(";")
    if not sep:
        return s
    if not name:
        raise ValueError(f"cannot parse path '{s}', no metric found")

    tags = _parse_tags(tail)
    pairs = "&".join(f"{query(key)}={query(tags[key])}" for key in sorted(tags))
    return f"{path(name)}?{pairs}"