"""Lambda handler for the Retail API using Mangum."""
from mangum import Mangum

from retail_api.main import create_app

app = create_app()

# Lifespan runs so storage resources exist before the first request
handler = Mangum(app, lifespan="auto")

lambda_handler = handler
