"""
Minimal h11 client used by the tests to talk to the server over a trio stream.
"""

import h11

MAX_RECV = 2 ** 16


class H11Client:
    def __init__(self, stream):
        self.stream = stream
        self.conn = h11.Connection(h11.CLIENT)

    async def _next_event(self):
        while True:
            event = self.conn.next_event()
            if event is h11.NEED_DATA:
                self.conn.receive_data(await self.stream.receive_some(MAX_RECV))
                continue
            return event

    async def _send(self, event):
        await self.stream.send_all(self.conn.send(event))

    async def request(self, method, target, headers=(), body=b''):
        """Send one request and return ``(response, body_bytes)``."""
        if self.conn.states == {h11.CLIENT: h11.DONE, h11.SERVER: h11.DONE}:
            self.conn.start_next_cycle()

        request_headers = [('Host', 'localhost')] + list(headers)
        if body:
            request_headers.append(('Content-Length', str(len(body))))
        await self._send(h11.Request(
            method=method, target=target, headers=request_headers))
        if body:
            await self._send(h11.Data(data=body))
        await self._send(h11.EndOfMessage())

        response = await self._next_event()
        while type(response) is h11.InformationalResponse:
            response = await self._next_event()
        assert type(response) is h11.Response, response

        data = bytearray()
        while True:
            event = await self._next_event()
            if type(event) is h11.EndOfMessage:
                break
            data += event.data
        return response, bytes(data)


def header(response, name):
    """Value of a response header as str, or None."""
    name = name.lower().encode('ascii')
    for key, value in response.headers:
        if key == name:
            return value.decode('latin-1')
    return None
