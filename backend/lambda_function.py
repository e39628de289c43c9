from mangum import Mangum
from main import app

# API Gateway entry point; no lifespan events under Lambda
handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    return handler(event, context)
