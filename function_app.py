"""Azure Functions entry point serving the users API.

Every route of the FastAPI app is exposed as an anonymous HTTP trigger.
"""

import azure.functions as func

from application import app as users_api

app = func.AsgiFunctionApp(app=users_api, http_auth_level=func.AuthLevel.ANONYMOUS)
