GREETING = "Hello from EKS via Jenkins CI/CD! 🚀\n"


class Greeter:
    """ ASGI application that gives every request the same plaintext greeting.

    The request is never read: method, path, headers and body make no
    difference to the response.
    """
    body = GREETING.encode('utf-8')

    def __init__(self, scope):
        self.scope = scope

    async def __call__(self, receive, send):
        await send({
            'type': 'http.response.start',
            'status': 200,
            'headers': [
                (b'content-type', b'text/plain'),
            ],
        })
        await send({
            'type': 'http.response.body',
            'body': self.body,
        })
