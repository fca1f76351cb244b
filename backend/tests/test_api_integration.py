"""End-to-end API tests: file store, runs and stats against a temporary DB."""


def test_sample_files_are_seeded(client):
    r = client.get('/files')
    assert r.status_code == 200
    names = {f['name'] for f in r.json()}
    assert {'Hello World', 'Variables and Constants', 'Functions'} <= names


def test_sample_programs_run(client):
    expected = {
        'Hello World': 'Hello, World!\nWelcome to Swift Code Runner!\nThis is a sample Swift program\n',
        'Variables and Constants': (
            'App: Swift Code Runner\n'
            'Pi value: 3.14159\n'
            'Counter: 0\n'
            'Is running: true\n'
            'Updated counter: 1\n'
            'Updated isRunning: false\n'
        ),
        'Functions': 'Hello, Swift Developer!\n8\n120\n',
    }
    for name, output in expected.items():
        f = client.get(f'/files/{name}').json()
        r = client.post('/run', json={'code': f['content'], 'file_name': name})
        body = r.json()
        assert body['errors'] is None, body
        assert body['output'] == output


def test_save_list_get_delete(client):
    r = client.post('/files', json={'name': 'first.swift', 'content': 'print(1)'})
    assert r.json() == {'name': 'first'}
    client.post('/files', json={'name': 'second', 'content': 'print(2)'})

    listing = client.get('/files').json()
    assert [f['name'] for f in listing[:2]] == ['second', 'first']

    # overwriting refreshes modified_at but keeps created_at
    before = client.get('/files/first').json()
    client.post('/files', json={'name': 'first', 'content': 'print(11)'})
    after = client.get('/files/first').json()
    assert after['content'] == 'print(11)'
    assert after['created_at'] == before['created_at']
    assert after['modified_at'] >= before['modified_at']
    assert client.get('/files').json()[0]['name'] == 'first'

    assert client.delete('/files/first').json() == {'deleted': True}
    assert client.delete('/files/first').json() == {'deleted': False}
    assert client.get('/files/first').json() == {'error': 'not found'}


def test_save_rejects_empty_name(client):
    r = client.post('/files', json={'name': '  .swift', 'content': 'print(1)'})
    assert 'error' in r.json()


def test_runs_are_recorded_in_stats(client):
    client.post('/files', json={'name': 'tracked', 'content': 'print(1)'})
    client.post('/run', json={'code': 'print(1)', 'file_name': 'tracked'})
    client.post('/run', json={'code': 'add(1)', 'file_name': 'tracked.swift'})
    client.post('/run', json={'code': 'print(2)'})

    runs = client.get('/stats?file_name=tracked').json()
    assert [r['status'] for r in runs] == ['error', 'ok']
    assert runs[0]['error_code'] == 'COMPILATION_ERROR'

    all_runs = client.get('/stats').json()
    assert len(all_runs) == 3
