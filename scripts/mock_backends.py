"""Minimal mock agent backends for trying vibe-ade without Ollama or a cloud key.

Run:  python scripts/mock_backends.py [--port 11434] [--cloud-failures N] [--cloud-status 500]
Then: point backends.localUrl at http://127.0.0.1:<port>/api/generate and the
      vault's cloud URL at http://127.0.0.1:<port>/v1/chat/completions.

Implements:
  POST /api/generate          Ollama non-streaming generate
  POST /v1/chat/completions   OpenAI-style chat completion; answers in
                              [THOUGHT]/[ACTION] form when the system prompt
                              asks for it
"""

import argparse
import json
from http.server import BaseHTTPRequestHandler, HTTPServer, ThreadingHTTPServer


class MockHandler(BaseHTTPRequestHandler):
    server: "MockBackendServer"

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        try:
            body = json.loads(self.rfile.read(length)) if length else {}
        except json.JSONDecodeError:
            self._json_response(400, {"error": "invalid json"})
            return

        if self.path == "/api/generate":
            prompt = str(body.get("prompt", ""))
            self._json_response(200, {
                "model": body.get("model", "unknown"),
                "response": f"mock local answer to: {prompt[:100]}",
                "done": True,
            })
            return

        if self.path == "/v1/chat/completions":
            if self.server.cloud_failures > 0:
                self.server.cloud_failures -= 1
                self._json_response(self.server.cloud_status, {"error": {"message": "mock failure"}})
                return

            if not self.headers.get("Authorization", "").startswith("Bearer "):
                self._json_response(401, {"error": {"message": "missing bearer token"}})
                return

            messages = body.get("messages", [])
            system = messages[0]["content"] if messages else ""
            user_msg = messages[-1]["content"] if messages else "hello"
            if "[THOUGHT]" in system:
                text = f"[THOUGHT] considering: {user_msg[:100]}\n[ACTION] echo done"
            else:
                text = f"mock cloud answer to: {user_msg[:100]}"
            self._json_response(200, {
                "choices": [{
                    "message": {"role": "assistant", "content": text},
                    "finish_reason": "stop",
                }]
            })
            return

        self._json_response(404, {"error": "not found"})

    def _json_response(self, code: int, data: dict):
        body = json.dumps(data).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        if self.server.verbose:
            print(f"[mock-backends] {args[0]}")


class MockBackendServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, cloud_failures: int = 0, cloud_status: int = 500, verbose: bool = False):
        super().__init__(address, MockHandler)
        self.cloud_failures = cloud_failures
        self.cloud_status = cloud_status
        self.verbose = verbose


def make_server(host: str = "127.0.0.1", port: int = 0, **kwargs) -> HTTPServer:
    """Bound (not yet serving) mock server; port 0 picks a free port."""
    return MockBackendServer((host, port), **kwargs)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--port", type=int, default=11434)
    parser.add_argument("--cloud-failures", type=int, default=0, help="Fail this many cloud calls first.")
    parser.add_argument("--cloud-status", type=int, default=500)
    args = parser.parse_args()

    server = make_server(
        port=args.port,
        cloud_failures=args.cloud_failures,
        cloud_status=args.cloud_status,
        verbose=True,
    )
    host, port = server.server_address[:2]
    print(f"Mock backends running on http://{host}:{port}")
    print("Endpoints:")
    print("  POST /api/generate")
    print("  POST /v1/chat/completions")
    print("\nPress Ctrl+C to stop")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nStopped.")
