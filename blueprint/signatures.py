"""Canonical property and method signature strings."""

from __future__ import annotations

from typing import List, Optional

from .docblock import AnnotationTagSet, ParamTag
from .reflection.models import MethodDeclaration, NativeType, ParameterDeclaration, PropertyDeclaration
from .values import render_default, resolve_value

_BARE_NULLABLE = {"mixed", "null"}


def render_native_type(native: NativeType) -> str:
    """Render a declared type: ``?T`` becomes ``T|null``, intersections in unions get parentheses."""
    if native.kind == "named":
        if native.nullable and native.name not in _BARE_NULLABLE:
            return f"{native.name}|null"
        return native.name
    if native.kind == "intersection":
        return "&".join(render_native_type(member) for member in native.members)
    parts = []
    for member in native.members:
        text = render_native_type(member)
        parts.append(f"({text})" if member.kind == "intersection" else text)
    return "|".join(parts)


def merge_type(annotation: Optional[str], native: Optional[NativeType]) -> Optional[str]:
    """The annotation type wins; the native declaration is the fallback."""
    if annotation is not None:
        return annotation
    if native is not None:
        return render_native_type(native)
    return None


def render_property(prop: PropertyDeclaration, *, var_type: Optional[str], readonly: bool = False) -> str:
    parts: List[str] = []
    if prop.is_static:
        parts.append("static")
    if prop.is_readonly or readonly:
        parts.append("readonly")
    type_text = merge_type(var_type, prop.type)
    if type_text is not None:
        parts.append(type_text)
    parts.append(f"${prop.name}")
    return " ".join(parts)


def render_parameter(param: ParameterDeclaration, tag: Optional[ParamTag]) -> str:
    text = ""
    type_text = merge_type(tag.type if tag is not None else None, param.type)
    if type_text is not None:
        text += f"{type_text} "
    if param.is_variadic:
        text += "..."
    text += f"${param.name}"

    if param.is_optional and not param.is_variadic:
        if param.has_default:
            value = resolve_value(param.get_default_value, subject=f"default of ${param.name}")
            text += f" = {render_default(value)}"
        else:
            text += " = ?"

    if tag is not None and tag.description:
        text += f" /*{tag.description}*/"
    return text


def render_method(method: MethodDeclaration, tags: AnnotationTagSet, summary: Optional[str]) -> str:
    params = ", ".join(render_parameter(param, tags.params.get(param.name)) for param in method.parameters)
    signature = f"{'static ' if method.is_static else ''}{method.name}({params})"
    return_type = merge_type(tags.return_type, method.return_type)
    if return_type is not None:
        signature += f": {return_type}"
    if summary is not None:
        signature += f" — {summary}"
    if tags.throws:
        signature += " @throws " + "|".join(tags.throws)
    return signature


__all__ = [
    "merge_type",
    "render_method",
    "render_native_type",
    "render_parameter",
    "render_property",
]
