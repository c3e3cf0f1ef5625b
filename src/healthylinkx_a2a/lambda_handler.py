"""AWS Lambda entry point.

The Function URL event is translated into an ASGI request for the FastAPI
app. Lifespan events are skipped; state is created at import time and lives
as long as the runtime instance.
"""

from mangum import Mangum

from .api import app

handler = Mangum(app, lifespan="off")
