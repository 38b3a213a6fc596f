# sailscore

Small building blocks for services that answer HTTP requests and exchange
messages over a queue.

## What is inside

- `sailscore.response`: the unified response envelope. Every reply is a dict
  with `code`, `msg`, `data` and `requestId`. `ResponseCode` holds the codes
  (200, 400, 401, 403, 404, 422, 500). `BusinessError` is an exception that
  carries a complete envelope. The helpers `new_business_error`,
  `new_param_error`, `new_unauthorized_error`, `new_forbidden_error`,
  `new_not_found_error` and `new_system_error` build one. A missing trace id
  becomes the request id `"unknown"`. `handle_response(data, error, trace_id)`
  returns the envelope dict. It gives a success envelope for a result, the
  error's own envelope for a `BusinessError`, and a code 500 envelope for any
  other exception.
- `sailscore.httplog`: `HTTPLogMiddleware(app, logger)`, a WSGI middleware. It
  writes one `INFO` record per request. The message is coloured and shows the
  status, method, path, client IP and user agent. The full details go in
  `extra={"http": {...}}`:
  - method, path and status code
  - duration
  - client IP, taken from `X-Forwarded-For`, then `X-Real-IP`, then the remote
    address
  - user agent, cut to 60 characters
  - the request parameters that were collected
  - the first 1500 characters of the response body, and the response size
  - trace and span ids, read from a `traceparent` header
  - the caller, as the application's file and line

  `collect_request_params(environ)` returns the collected parameters as a JSON
  string. It holds the query string, the body (parsed as JSON, or kept as raw
  text), form fields, and the `Authorization` and `Content-Type` headers, with
  `Authorization` masked. The body is read and then put back, so the
  application can still read it. The helpers `flatten_params`, `limit_string`,
  `status_code_highlight`, `method_highlight`, `client_ip` and `user_agent`
  can also be used on their own.
- `sailscore.mqconfig`: `MqConfig`, `ProducerConfig`, `ConsumerConfig` and
  `default_config()`. The defaults are:
  - producer: topic `default_topic`, 3 s timeout, 3 retries
  - consumer: group `default_group`, 15 s await, 32 messages per batch, 20 s
    invisible duration
- `sailscore.mqmessage`: `Message`, the outgoing message, and `MessageView`, a
  message as delivered to a consumer. `BusinessMessage` is a protocol with
  `topic`, `tag`, `keys` and `to_bytes()`. The options `with_tag`,
  `with_keys`, `with_delay`, `with_fifo` and `with_property` shape a message
  through `Message.apply(...)`.
- `sailscore.mqclient`: `Client(config, producer, consumer)`. Creating it
  starts the producer. The client offers:
  - `send(msg)`: sends a business message to its topic, with its tag and keys.
  - `send_with_options(topic, body, *options)`: sends raw bytes.
  - `send_async(msg, callback)`: sends in a background thread and passes the
    error, or `None`, to `callback`.
  - `subscribe(topic, handler)`: routes every message on `topic` to
    `handler`.
  - `start_consumer()`: starts the consumer and a background receive loop.
  - `handle_message(msg)`: runs the handler for one message and acknowledges
    the message if the handler succeeds. It returns whether the message was
    acknowledged.
  - `close()`: stops the producer and the consumer.

  Failures raise `MqClientError`. `Client` is also a context manager.
- `sailscore.messages`: `OrderMessage`, `PaymentMessage` and
  `InventoryMessage`. Each has its topic, tag and keys, plus `to_bytes()` and
  `from_bytes()` for a JSON encoding.
- `sailscore.slswriter`: `Writer(config, producer)` is built from an
  `SlsConfig` and a `LogProducer`.
  - `write(data)` sends one raw line as a `content` field and returns the
    length of its input.
  - `alert`, `debug`, `error`, `info`, `severe`, `slow`, `stack` and `stat`
    send records with `level`, `message`, `timestamp` and any keyword fields.
    `to_string` renders each value.
  - Delivery errors are ignored.
  - `close()` stops the producer and waits up to five seconds.
- `sailscore.processor`: `MessageProcessor` decodes order and payment messages
  and dispatches orders by status (`CREATED`, `PAID`, `CANCELLED`).
  `ConsumerManager(client, processor)` subscribes the processor to
  `order_topic` and `payment_topic`, then starts consuming. `TagConsumer`
  does the same job but dispatches on the message tag.
- `sailscore.userlogic`: `UserService(client)` handles two requests and
  returns a `Greeting` for each.
  - `hello(HelloRequest)` publishes a payment message and an order-paid
    message.
  - `user(UserRequest)` publishes a new-order message. `UserRequest` accepts
    only the names `you` and `me`.

## Installing

```
pip install .
```

## Examples

```python
from sailscore.response import handle_response, new_param_error

ok = handle_response({"id": 1}, None, trace_id="abc123")
print(ok)
# {'code': 200, 'msg': 'success', 'data': {'id': 1}, 'requestId': 'abc123'}

failed = handle_response(None, new_param_error("name is required", "abc123"), "abc123")
print(failed["code"])  # 422
```

Wrapping a WSGI application with request logging:

```python
import logging
from sailscore.httplog import HTTPLogMiddleware

app = HTTPLogMiddleware(my_wsgi_app, logging.getLogger("http"))
```

Encoding a queue message:

```python
from sailscore.messages import InventoryMessage

msg = InventoryMessage(product_id="p1", sku="s1", quantity=2, operation="LOCK")
print(msg.topic, msg.tag, msg.to_bytes())
# inventory_topic LOCK b'{"product_id":"p1","sku":"s1","quantity":2,"operation":"LOCK"}'
```

## What the package does not do

The package has no broker connection and no log-service connection of its own.
`Client` works through any object that follows the `Producer` and `Consumer`
protocols, and `Writer` works through any `LogProducer`. You supply these
objects, whether they talk to a real service or are in-memory stand-ins.

There is no HTTP server and no command-line program. `HTTPLogMiddleware` wraps
a WSGI application that you serve yourself.

## Running the tests

```
pip install .[test]
pytest
```