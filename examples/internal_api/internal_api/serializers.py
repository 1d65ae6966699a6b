"""Request and response schemas shared by the internal API routes."""

from schemaroute import Type

ErrorObject = Type.object(
    {
        "code": Type.string(),
        "message": Type.string(),
    },
    name="ErrorObject",
)

ErrorResponse = Type.object({"error": ErrorObject}, name="ErrorResponse")


def limited_string(max_length: int = 255):
    return Type.refine(
        Type.string(),
        lambda value: len(value) <= max_length,
        f"String can't be more than {max_length} characters",
        constraint=f"length <= {max_length}",
    )


UserPostRequest = Type.object(
    {
        "id": Type.number(),
        "nickname": limited_string(32),
    },
    optional=["nickname"],
    name="UserPostRequest",
)

UserPostResponse = Type.object(
    {
        "id": Type.string(format="uuid"),
        "failureCount": Type.nullable(Type.number()),
    },
    name="UserPostResponse",
)
