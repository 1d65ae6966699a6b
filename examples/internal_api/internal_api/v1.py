import logging
import uuid

from schemaroute import SchemaRouter, Type, describe_route, resolver, validator

from .serializers import ErrorResponse, UserPostRequest, UserPostResponse

logger = logging.getLogger(__name__)

router = SchemaRouter()
user_response = resolver(UserPostResponse)


@router.post(
    "/{id}",
    describe_route(
        summary="Create a user",
        tags=["users"],
        responses={
            200: {
                "description": "Example Response",
                "content": {"application/json": {"schema": user_response}},
            },
            500: {
                "description": "Internal Server Error",
                "content": {"application/json": {"schema": ErrorResponse}},
            },
        },
    ),
    validator("param", Type.object({"id": Type.number()})),
    validator("json", UserPostRequest),
)
def create_user(ctx):
    user_id = ctx.valid("param")["id"]
    logger.info(f"Creating user from {ctx.valid('json')}")
    return user_response.validate(
        {"id": str(uuid.uuid4()), "failureCount": 0 if user_id % 2 == 0 else None}
    )
