"""Internal API example.

Serve with `python -m internal_api.app`, or print the OpenAPI document with
`python -m internal_api.app --openapi`.
"""

import sys

from schemaroute import SchemaRouter, load_settings, run

from .serializers import ErrorObject, ErrorResponse
from .v1 import router as v1

router = SchemaRouter()
router.component("ErrorObject", ErrorObject)
router.component("ErrorResponse", ErrorResponse)
router.include("/api/users", v1)


if __name__ == "__main__":
    sys.exit(run(router, settings=load_settings("schemaroute.yml")))
