"""Identifier case conversions shared by the spec layer and the templates."""

import re

_WORD_RE = re.compile(r"[^\W_]+")
_SPLIT_CASE_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")

# Initialisms that golint expects to keep a consistent case.
COMMON_INITIALISMS = frozenset([
    "ACL", "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML", "HTTP",
    "HTTPS", "ID", "IP", "JSON", "LHS", "OS", "QPS", "RAM", "RHS", "RPC", "SLA",
    "SMTP", "SQL", "SSH", "TCP", "TLS", "TTL", "UDP", "UI", "UID", "UUID", "URI",
    "URL", "UTF8", "VM", "XML", "XMPP", "XSRF", "XSS",
])


def camel_case(src: str) -> str:
    """
    Join the alphanumeric chunks of src, upper-casing the first letter of every
    chunk but the first. The first chunk is left untouched.

        camel_case("example-dep")  -> "exampleDep"
        camel_case("tchannel/foo") -> "tchannelFoo"
    """
    chunks = _WORD_RE.findall(src)
    if not chunks:
        return ""
    return chunks[0] + "".join(_upper_first(chunk) for chunk in chunks[1:])


def pascal_case(src: str) -> str:
    return _upper_first(camel_case(src))


def title(src: str) -> str:
    """Upper-case the first letter of every space separated word."""
    return " ".join(_upper_first(word) for word in src.split(" "))


def lint_acronym(name: str) -> str:
    """
    Rewrite the initialisms inside an identifier to upper case, keeping a
    leading lower-case initialism lower case: "userId" -> "userID",
    "HttpClient" -> "HTTPClient", "idUser" -> "idUser".
    """
    parts = []
    for segment in name.split("_"):
        words = _SPLIT_CASE_RE.findall(segment)
        fixed = []
        for index, word in enumerate(words):
            upper = word.upper()
            if upper in COMMON_INITIALISMS:
                if index == 0 and word[0].islower():
                    upper = word.lower()
                fixed.append(upper)
            else:
                fixed.append(word)
        parts.append("".join(fixed) if words else segment)
    return "_".join(parts)


def _upper_first(word: str) -> str:
    return word[:1].upper() + word[1:]
