# HTTP/1.1 implementation based on h11
# Derived from work by Nathaniel J. Smith <njs@pobox.com> and other contributors
# https://github.com/python-hyper/h11/blob/33c5282340b61ddea0dc00a16b6582170d822d81/examples/trio-server.py

from itertools import count
import logging
from wsgiref.handlers import format_date_time

import trio
import h11

MAX_RECV = 2 ** 16
TIMEOUT = 10

log = logging.getLogger(__name__)

################################################################
# I/O adapter: h11 <-> trio
################################################################

class H11Connection:
    """ One server-side HTTP/1.1 connection over a trio stream.
    """
    _next_id = count()

    def __init__(self, stream):
        self.stream = stream
        self.conn = h11.Connection(h11.SERVER)
        self.ident = " ".join([
            "trio-greeter/0.1.0",
            h11.PRODUCT_ID,
        ]).encode("ascii")
        # Tags debug output when several clients are connected at once.
        self._obj_id = next(H11Connection._next_id)

    async def send(self, event):
        # ConnectionClosed would make h11 return None instead of bytes.
        assert type(event) is not h11.ConnectionClosed
        data = self.conn.send(event)
        await self.stream.send_all(data)

    async def _read_from_peer(self):
        if self.conn.they_are_waiting_for_100_continue:
            self.debug("sending 100 Continue")
            go_ahead = h11.InformationalResponse(
                status_code=100,
                headers=self.basic_headers())
            await self.send(go_ahead)
        try:
            data = await self.stream.receive_some(MAX_RECV)
        except ConnectionError:
            # Peer went away; h11 sees it as EOF.
            data = b""
        self.conn.receive_data(data)

    async def next_event(self):
        while True:
            event = self.conn.next_event()
            if event is h11.NEED_DATA:
                await self._read_from_peer()
                continue
            return event

    async def discard_request_body(self):
        # h11 only starts a new cycle once the request has been read to
        # the end, whether or not the application looked at it.
        while self.conn.their_state is h11.SEND_BODY:
            event = await self.next_event()
            if type(event) is h11.Data:
                self.debug("discarding %d unread body bytes", len(event.data))

    async def shutdown_and_clean_up(self):
        # The protocol state no longer matters here: half-close the socket,
        # give the peer a moment to notice and close, then close our end.
        try:
            await self.stream.send_eof()
        except (trio.ClosedResourceError, trio.BrokenResourceError):
            return
        with trio.move_on_after(TIMEOUT):
            try:
                while True:
                    got = await self.stream.receive_some(MAX_RECV)
                    if not got:
                        break
            except (trio.ClosedResourceError, trio.BrokenResourceError):
                pass
            finally:
                await self.stream.aclose()

    def basic_headers(self):
        # Headers HTTP requires on every response.
        return [
            ("Date", format_date_time(None).encode("ascii")),
            ("Server", self.ident),
        ]

    def debug(self, msg, *args):
        log.debug("conn %s: " + msg, self._obj_id, *args)


################################################################
# Connection loop
################################################################

# Each pass of the loop handles one request/response cycle. The happy path
# leaves h11 either in DONE/DONE (keep-alive, start the next cycle) or in
# MUST_CLOSE (shut the socket down). Anything else, whether a misbehaving
# client, a failing handler or a timeout, gets a best-effort error response
# and h11 decides whether the connection can still be reused.
async def http_serve(request_handler, stream):
    wrapper = H11Connection(stream)
    while True:
        assert wrapper.conn.states == {
            h11.CLIENT: h11.IDLE, h11.SERVER: h11.IDLE}

        try:
            with trio.move_on_after(TIMEOUT):
                wrapper.debug("waiting for request")
                event = await wrapper.next_event()
                wrapper.debug("got event %r", event)
                if type(event) is h11.Request:
                    await request_handler(wrapper, event)
        except Exception as exc:
            wrapper.debug("error while handling request: %r", exc)
            await maybe_send_error_response(wrapper, exc)

        if wrapper.conn.our_state is h11.MUST_CLOSE:
            wrapper.debug("connection is not reusable, shutting down")
            await wrapper.shutdown_and_clean_up()
            return
        try:
            wrapper.conn.start_next_cycle()
            wrapper.debug("reusing connection")
        except h11.LocalProtocolError:
            wrapper.debug("not in a reusable state: %r", wrapper.conn.states)
            return


################################################################
# ASGI interface
################################################################

def build_scope(event):
    path, _, query = event.target.partition(b"?")
    return {
        'type': 'http',
        'http_version': event.http_version.decode('ascii'),
        'method': event.method.decode('ascii').upper(),
        'scheme': 'http',
        'path': path.decode('utf-8', 'replace'),
        'raw_path': path,
        'query_string': query,
        'root_path': '',
        'headers': [(name, value) for name, value in event.headers],
    }


async def h11_serve_asgi(application, stream):
    async def request_adapter(wrapper, event):
        scope = build_scope(event)
        wrapper.debug("%s %s", scope['method'], scope['path'])
        application_instance = application(scope)
        head_only = scope['method'] == 'HEAD'
        request_received = False
        send_headers = wrapper.basic_headers()
        send_status = None
        headers_sent = False
        chunked = False

        async def receive():
            nonlocal request_received
            if request_received:
                raise ValueError('request was already received')
            event = await wrapper.next_event()
            if type(event) is h11.EndOfMessage:
                request_received = True
                return {
                    'type': 'http.request',
                    'body': b'',
                    'more_body': False,
                }
            elif type(event) is h11.Data:
                return {
                    'type': 'http.request',
                    'body': event.data,
                    'more_body': True,
                }
            else:
                raise RuntimeError('unexpected event {!r}'.format(event))

        async def send(evt):
            nonlocal send_status, headers_sent, chunked
            if evt['type'] == 'http.response.start':
                send_status = evt['status']
                send_headers.extend(evt.get('headers', []))
            elif evt['type'] == 'http.response.body':
                body = evt.get('body', b'')
                more_body = evt.get('more_body', False)
                chunked |= more_body
                if not headers_sent:
                    if not chunked:
                        send_headers.append(('content-length', str(len(body))))
                    res = h11.Response(status_code=send_status, headers=send_headers)
                    await wrapper.send(res)
                    headers_sent = True
                if body and not head_only:
                    await wrapper.send(h11.Data(data=body))
                if not more_body:
                    await wrapper.send(h11.EndOfMessage())
            else:
                raise ValueError(evt['type'])

        await application_instance(receive, send)
        await wrapper.discard_request_body()

    await http_serve(request_adapter, stream)


################################################################
# Helpers
################################################################

async def send_simple_response(wrapper, status_code, content_type, body):
    wrapper.debug("sending %s response with %d bytes", status_code, len(body))
    headers = wrapper.basic_headers()
    headers.append(("Content-Type", content_type))
    headers.append(("Content-Length", str(len(body))))
    res = h11.Response(status_code=status_code, headers=headers)
    await wrapper.send(res)
    await wrapper.send(h11.Data(data=body))
    await wrapper.send(h11.EndOfMessage())


async def maybe_send_error_response(wrapper, exc):
    if wrapper.conn.our_state not in {h11.IDLE, h11.SEND_RESPONSE}:
        wrapper.debug("can't send error response in state %s",
                      wrapper.conn.our_state)
        return
    try:
        if isinstance(exc, h11.RemoteProtocolError):
            status_code = exc.error_status_hint
        else:
            status_code = 500
        body = str(exc).encode("utf-8")
        await send_simple_response(wrapper,
                                   status_code,
                                   "text/plain; charset=utf-8",
                                   body)
    except Exception as exc:
        wrapper.debug("error while sending error response: %r", exc)
