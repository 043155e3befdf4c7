"""AWS Lambda entry point.

Mangum adapts API Gateway events to the ASGI app. Lifespan is off, so no
background sweep runs here; lazy pruning keeps decisions correct and the
DynamoDB TTL attribute collects idle keys.
"""

from mangum import Mangum

from quotagate.main import app

handler = Mangum(app, lifespan="off")
