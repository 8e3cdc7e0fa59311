from functools import partial

import trio

from .greeter import GREETING, Greeter
from .h11server import h11_serve_asgi

__all__ = ['GREETING', 'Greeter', 'HOST', 'PORT', 'run', 'serve_tcp']

# Bind on every interface, like a bare listen(port).
HOST = None
PORT = 3000


async def serve_tcp(application, host=HOST, port=PORT, *,
                    task_status=trio.TASK_STATUS_IGNORED):
    """ Bind the listener once and serve the application on it forever.

    Raises OSError if the port can't be bound. The readiness line is
    printed only after a successful bind.
    """
    listeners = await trio.open_tcp_listeners(port, host=host)
    bound_port = listeners[0].socket.getsockname()[1]
    print("Listening on {}".format(bound_port), flush=True)
    task_status.started(listeners)

    serve_func = partial(h11_serve_asgi, application)
    await trio.serve_listeners(serve_func, listeners)


def run(application, host=None, port=None):
    """ Run the given ASGI application.
    """
    host = str(host) if host else HOST
    port = int(port) if port is not None else PORT

    try:
        trio.run(serve_tcp, application, host, port)
    except KeyboardInterrupt:
        pass
