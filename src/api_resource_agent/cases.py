"""Identifier case conversion between kebab-case and Pascal/camel/snake case.

Resource singulars and plurals are kebab-case. Schema names in documents are
usually PascalCase, operation IDs are PascalCase.
"""


def pascal_to_kebab(s: str) -> str:
    """Convert PascalCase to kebab-case, keeping acronyms together.

    An uppercase character starts a new word, except inside an acronym: a run
    of uppercase characters is one word, and the last of them starts the next
    word when followed by a lowercase character.

        >>> pascal_to_kebab("XMLHttpRequest")
        'xml-http-request'
    """
    boundaries: list[int] = []
    previous_is_upper = False
    in_acronym = False

    for i, char in enumerate(s):
        if "A" <= char <= "Z":
            if previous_is_upper and not in_acronym:
                in_acronym = True
                boundaries.append(i - 1)
            previous_is_upper = True
        else:
            if previous_is_upper:
                boundaries.append(i - 1)
            in_acronym = False
            previous_is_upper = False

    parts = []
    start = 0
    for boundary in boundaries:
        if boundary != start:
            parts.append(s[start:boundary])
            start = boundary
    parts.append(s[start:])
    return "-".join(parts).lower()


def kebab_to_camel(s: str) -> str:
    first, *rest = s.split("-")
    return first + "".join(upper_first(part) for part in rest)


def kebab_to_pascal(s: str) -> str:
    return upper_first(kebab_to_camel(s))


def kebab_to_snake(s: str) -> str:
    return s.replace("-", "_")


def upper_first(s: str) -> str:
    return s[:1].upper() + s[1:]
