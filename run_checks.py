import os

os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("AI_ENABLED", "false")

from fastapi.testclient import TestClient
from civicpulse.main import app

with TestClient(app) as client:
    print('ROOT:')
    print(client.get('/').json())

    print('\nHEALTH:')
    print(client.get('/health').json())

    print('\nDB HEALTH:')
    resp = client.get('/health/db')
    print(resp.status_code)
    print(resp.json())

    print('\nISSUES:')
    print(client.get('/issue').json())
