"""API smoke tests using FastAPI TestClient."""


def test_run_smoke(client):
    r = client.post('/run', json={'code': 'print("hi")'})
    assert r.status_code == 200
    body = r.json()
    assert body['output'] == 'hi\n'
    assert body['errors'] is None
    assert body['rendered'] == 'hi\n'
    assert isinstance(body['duration_ms'], int)


def test_run_error_payload(client):
    r = client.post('/run', json={'code': 'print("a")\nprint(missing)'})
    assert r.status_code == 200
    body = r.json()
    assert body['output'] == ''
    err = body['errors']
    assert err['code'] == 'RUNTIME_ERROR'
    assert err['line'] == 2
    assert err['context'] == {'line_text': 'print(missing)'}
    assert body['rendered'].startswith('Error: Runtime Error: ')
