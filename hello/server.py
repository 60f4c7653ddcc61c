import errno
import logging
import signal
import socket
import sys
import threading
from importlib.metadata import PackageNotFoundError, version

from werkzeug.serving import make_server

from .app import create_app
from .config import load_settings

LISTEN_BACKLOG = 128

log = logging.getLogger(__name__)


def bind_socket(host, port):
    """Binds and listens on ``host:port``.

    Raises ``OSError`` when the address is unusable and ``OverflowError``
    when the port is outside 0-65535.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(LISTEN_BACKLOG)
    except OSError:
        sock.close()
        raise
    return sock


def build_server(app, settings):
    """Returns a threaded WSGI server bound to the configured address.

    Each accepted connection is handled on its own thread. A port of 0
    binds an ephemeral port, available afterwards as ``server.port``.
    """
    sock = bind_socket(settings.host, settings.port)
    try:
        # werkzeug duplicates the descriptor, so our copy is closed below.
        return make_server(
            settings.host,
            sock.getsockname()[1],
            app,
            threaded=True,
            fd=sock.fileno(),
        )
    finally:
        sock.close()


def _framework_version():
    try:
        return version("flask")
    except PackageNotFoundError:
        return "unknown"


def _log_startup(logger, settings, port):
    logger.info(f"HTTP server successfully started and listening on {settings.host}:{port}")
    logger.info("Server is ready to accept HTTP requests")
    logger.info(f"Local development URL: http://localhost:{port}")
    logger.info(
        f"Python {sys.version.split()[0]} | Flask {_framework_version()} | Environment: {settings.app_env}"
    )


def _log_startup_failure(logger, settings, exc):
    code = getattr(exc, "errno", None)
    if code == errno.EADDRINUSE:
        logger.error(f"Server startup failed: Port {settings.port} is already in use")
        logger.error(f"Stop the process using port {settings.port} or use a different port, e.g. PORT={settings.port + 1}")
    else:
        logger.error(f"Server startup failed with error: {getattr(exc, 'strerror', None) or exc}")
        logger.error(f"Error code: {errno.errorcode.get(code, 'UNKNOWN')}")
    logger.error("Application terminating due to server startup failure")


def _install_signal_handlers(logger, server):
    def graceful_shutdown(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down gracefully...")
        # shutdown() blocks until serve_forever() returns, so it can't run here.
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGTERM, graceful_shutdown)
    signal.signal(signal.SIGINT, graceful_shutdown)


def serve(app, settings):
    """Serves ``app`` until shutdown and returns the process exit status."""
    try:
        server = build_server(app, settings)
    except (OSError, OverflowError) as exc:
        _log_startup_failure(app.logger, settings, exc)
        return 1

    _log_startup(app.logger, settings, server.port)
    if threading.current_thread() is threading.main_thread():
        _install_signal_handlers(app.logger, server)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    app.logger.info("Server stopped")
    return 0


def main():
    try:
        settings = load_settings()
    except ValueError as exc:
        log.error(f"Invalid configuration: {exc}")
        sys.exit(1)
    sys.exit(serve(create_app(settings), settings))
