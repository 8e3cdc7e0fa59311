"""
Tests for the Greeter ASGI application, called directly without a server.
"""

import unittest

import trio

from trio_greeter import GREETING, Greeter


def call_app(scope):
    sent = []

    async def receive():
        raise AssertionError("the greeter must not read the request")

    async def send(event):
        sent.append(event)

    trio.run(Greeter(scope), receive, send)
    return sent


def http_scope(method='GET', path='/', headers=()):
    return {
        'type': 'http',
        'http_version': '1.1',
        'method': method,
        'scheme': 'http',
        'path': path,
        'query_string': b'',
        'root_path': '',
        'headers': list(headers),
    }


class TestGreeter(unittest.TestCase):
    def test_greeting_text(self):
        self.assertEqual(
            Greeter.body,
            "Hello from EKS via Jenkins CI/CD! \U0001F680\n".encode('utf-8'))
        self.assertEqual(GREETING.encode('utf-8'), Greeter.body)
        self.assertTrue(Greeter.body.endswith(b'\n'))

    def test_sends_start_then_whole_body(self):
        start, body = call_app(http_scope())

        self.assertEqual(start['type'], 'http.response.start')
        self.assertEqual(start['status'], 200)
        self.assertEqual(list(start['headers']), [(b'content-type', b'text/plain')])
        self.assertEqual(body['type'], 'http.response.body')
        self.assertEqual(body['body'], GREETING.encode('utf-8'))
        self.assertFalse(body.get('more_body', False))

    def test_request_details_are_ignored(self):
        expected = call_app(http_scope())
        for method, path in [('POST', '/'), ('DELETE', '/anything/at/all'),
                             ('BREW', '/pot'), ('PUT', '/x?y=z')]:
            with self.subTest(method=method, path=path):
                events = call_app(http_scope(
                    method, path, headers=[(b'x-custom', b'1')]))
                self.assertEqual(events, expected)


if __name__ == '__main__':
    unittest.main()
