"""
Compose-style variable interpolation.
"""
import re
from typing import Dict, List, Optional, Tuple

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
# NAME[:][-+?]value inside ${...}; value may itself contain ${...}
_BRACED = re.compile(r"(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<colon>:?)(?P<op>[-+?])(?P<arg>.*))?", re.S)


class InterpolationError(ValueError):
    """
    Raised for ``${VAR:?message}`` / ``${VAR?message}`` when VAR is missing.
    """


class EnvironmentInterpolator:
    """
    Interpolates environment variables the way docker compose does.

    Supported forms:
      ``$VAR``, ``${VAR}``             value, empty string when unset
      ``${VAR:-default}``             default when unset or empty
      ``${VAR-default}``              default when unset
      ``${VAR:+alt}`` / ``${VAR+alt}``  alt when set (and non-empty for ``:+``)
      ``${VAR:?err}`` / ``${VAR?err}``  error when unset (or empty for ``:?``)
      ``$$``                          a literal ``$``

    Defaults, alternatives and error messages are interpolated too, so
    ``${A:-${B:-x}}`` resolves to ``x`` when neither variable is set.
    """

    @staticmethod
    def interpolate(template: str, context: Dict[str, str]) -> str:
        """
        Interpolates ``template`` and discards the list of unset variables.
        """
        result, _ = EnvironmentInterpolator.interpolate_with_missing(template, context)
        return result

    @staticmethod
    def interpolate_with_missing(template: str, context: Dict[str, str]) -> Tuple[str, List[str]]:
        """
        Interpolates ``template`` using ``context``.

        :return: The interpolated text and the names of plain ``${VAR}`` references
                 that were unset and therefore replaced by an empty string.
        :raises InterpolationError: For a required variable that is missing.
        """
        missing: List[str] = []
        return EnvironmentInterpolator._expand(template, context, missing), missing

    @staticmethod
    def _expand(template: str, context: Dict[str, str], missing: List[str]) -> str:
        out = []
        i = 0
        n = len(template)
        while i < n:
            char = template[i]
            nxt = template[i + 1] if i + 1 < n else ""
            if char != "$":
                out.append(char)
                i += 1
            elif nxt == "$":
                out.append("$")
                i += 2
            elif nxt == "{":
                end = _closing_brace(template, i + 2)
                match = _BRACED.fullmatch(template, i + 2, end) if end is not None else None
                if match is None:
                    # not a reference: keep the text as written
                    out.append(char)
                    i += 1
                    continue
                out.append(EnvironmentInterpolator._resolve(match, context, missing))
                i = end + 1
            else:
                match = _NAME.match(template, i + 1)
                if match is None:
                    out.append(char)
                    i += 1
                    continue
                out.append(EnvironmentInterpolator._lookup(match.group(), context, missing))
                i = match.end()
        return "".join(out)

    @staticmethod
    def _resolve(match: "re.Match[str]", context: Dict[str, str], missing: List[str]) -> str:
        name = match.group("name")
        op = match.group("op")
        if op is None:
            return EnvironmentInterpolator._lookup(name, context, missing)

        value = context.get(name)
        strict = match.group("colon") == ":"
        is_set = value is not None and (value != "" or not strict)

        def arg() -> str:
            return EnvironmentInterpolator._expand(match.group("arg"), context, missing)

        if op == "-":
            return value if is_set else arg()
        if op == "+":
            return arg() if is_set else ""
        if not is_set:
            raise InterpolationError(arg() or f"required variable {name} is missing a value")
        return value

    @staticmethod
    def _lookup(name: str, context: Dict[str, str], missing: List[str]) -> str:
        value = context.get(name)
        if value is None:
            missing.append(name)
            return ""
        return value


def _closing_brace(text: str, start: int) -> Optional[int]:
    """
    Index of the ``}`` closing a ``${`` whose body begins at ``start``, honouring nested braces.
    """
    depth = 0
    for j in range(start, len(text)):
        if text[j] == "{":
            depth += 1
        elif text[j] == "}":
            if depth == 0:
                return j
            depth -= 1
    return None
