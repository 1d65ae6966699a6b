"""Validation targets: which part of a request a schema governs."""

from enum import Enum


class ValidationTarget(str, Enum):
    """Request parts that can be validated.

    Every target except `JSON` carries text-only values (path segments,
    query strings, header and cookie values, urlencoded form fields), which
    is why the convert stage coerces more eagerly for them.
    """

    PARAM = "param"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    JSON = "json"
    FORM = "form"

    @classmethod
    def parse(cls, value: "str | ValidationTarget") -> "ValidationTarget":
        """Accept either a member or its string value.

        Raises:
            ValueError: If the value does not name a target
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown validation target '{value}'. Use one of: {allowed}") from None
