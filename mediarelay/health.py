# health.py - uptime probe for the process monitor
import http.server
import logging
import socketserver
import threading
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

BODY = b"Server is running"


class HealthHandler(http.server.BaseHTTPRequestHandler):
    def _head(self) -> bool:
        if urlsplit(self.path).path != "/":
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return False
        self.send_response(200)
        self.send_header("Content-type", "text/plain")
        self.send_header("Content-Length", str(len(BODY)))
        self.end_headers()
        return True

    def do_GET(self):
        if self._head():
            self.wfile.write(BODY)

    def do_HEAD(self):
        self._head()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class HealthServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True


def start_health_server(port:int, host:str="") -> HealthServer:
    """Serve the health check from a daemon thread. Port 0 picks a free port."""
    httpd = HealthServer((host, port), HealthHandler)
    threading.Thread(target=httpd.serve_forever, name="health", daemon=True).start()
    logger.info(f"Health server on port {httpd.server_address[1]}")
    return httpd
