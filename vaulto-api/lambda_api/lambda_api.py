"""
AWS Lambda handler for Vaulto AI API

Routes all API Gateway requests through the FastAPI application. Lambda
buffers the response, so a streamed answer reaches the browser in one piece
with the same frames.
"""

from mangum import Mangum
from vaulto.main import app

handler = Mangum(app, lifespan="off")
