import multiprocessing
import os
import random
import string
import time

import pytest
import requests


def _start_server(port: int, db_path: str):
    # run uvicorn in this process hosting the FastAPI app
    os.environ["SWIFTLET_DB_PATH"] = db_path
    import uvicorn
    from backend.app import main

    uvicorn.run(main.app, host="127.0.0.1", port=port, log_level="warning")


def _worker(port: int, n_requests: int, q: multiprocessing.Queue, seed: int):
    random.seed(seed)
    sess = requests.Session()
    for _ in range(n_requests):
        kind = random.choice(["print", "factorial", "let"])
        if kind == "print":
            times = random.randint(1, 50)
            code = "\n".join([
                'print("' + ''.join(random.choices(string.ascii_letters, k=8)) + '")'
                for _ in range(times)
            ])
            settings = {"max_output_chars": 2000}
        elif kind == "factorial":
            code = f"factorial({random.randint(0, 20)})"
            settings = {}
        else:
            n = random.randint(0, 1000)
            code = f"let a = {n}\nprint(a + 1)"
            settings = {"max_steps": 10}
        try:
            r = sess.post(f"http://127.0.0.1:{port}/run", json={"code": code, "settings": settings}, timeout=10)
            q.put((r.status_code, r.json()))
        except Exception as e:
            q.put(("ERR", str(e)))


@pytest.mark.stress
def test_process_level_concurrency_stress(tmp_path):
    # start a real HTTP server in a separate process to exercise process boundaries
    port = int(os.getenv("SWIFTLET_STRESS_PORT", "8001"))
    server = multiprocessing.Process(
        target=_start_server, args=(port, str(tmp_path / "stress.db")), daemon=True
    )
    server.start()

    ready = False
    for _ in range(80):
        try:
            r = requests.get(f"http://127.0.0.1:{port}/docs", timeout=1)
            if r.status_code == 200:
                ready = True
                break
        except requests.RequestException:
            time.sleep(0.125)
    if not ready:
        server.terminate()
        pytest.skip("uvicorn server failed to start")

    n_workers = int(os.getenv("SWIFTLET_STRESS_WORKERS", "8"))
    n_requests_per_worker = int(os.getenv("SWIFTLET_STRESS_REQS_PER_WORKER", "10"))
    q: multiprocessing.Queue = multiprocessing.Queue()
    workers = [
        multiprocessing.Process(target=_worker, args=(port, n_requests_per_worker, q, i))
        for i in range(n_workers)
    ]
    for w in workers:
        w.start()

    expected = n_workers * n_requests_per_worker
    results = [q.get(timeout=30) for _ in range(expected)]

    for w in workers:
        w.join(timeout=30)
    server.terminate()
    server.join(timeout=5)

    for status, body in results:
        assert status == 200, f"bad status: {status}"
        assert isinstance(body, dict)
        assert "output" in body and "errors" in body and "rendered" in body
