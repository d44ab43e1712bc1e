from mangum import Mangum
from main import app

# WebSocket routes are not served through API Gateway's REST integration
handler = Mangum(app, lifespan="off")

def lambda_handler(event, context):
    return handler(event, context)
