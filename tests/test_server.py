import socket
import threading

from miniredis.database import Database
from miniredis.parser import parse_stream
from miniredis.protocol import BulkReply, MultiBulkReply, StatusReply
from miniredis.server import Handler, get_free_port, listen_and_serve, main


def _request(*args):
    return MultiBulkReply(list(args)).to_bytes()


def test_handler_serves_commands_over_socket():
    with Database() as db:
        handler = Handler(db)
        server_side, client = socket.socketpair()
        worker = threading.Thread(target=handler.handle, args=(server_side,), daemon=True)
        worker.start()
        with client, client.makefile("rb") as reader:
            replies = parse_stream(reader)
            client.sendall(_request(b"set", b"k", b"v"))
            assert next(replies).data == StatusReply("SET OK , NEW KEY")
            client.sendall(_request(b"get", b"k"))
            assert next(replies).data == BulkReply(b"v")
            client.shutdown(socket.SHUT_WR)
            worker.join(timeout=5)
        server_side.close()
        assert not worker.is_alive()


def test_handler_close_marks_closed():
    with Database() as db:
        handler = Handler(db)
        handler.close()
        assert handler.closed is True


def test_get_free_port_dev():
    assert get_free_port(True) == "9999"


def test_get_free_port_is_bindable():
    port = get_free_port(False)
    assert port.isdigit()
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", int(port)))
        assert probe.getsockname()[1] == int(port)


def test_listen_and_serve_until_stopped():
    with Database() as db:
        handler = Handler(db)
        listener = socket.create_server(("127.0.0.1", 0))
        port = listener.getsockname()[1]
        stop = threading.Event()
        serving = threading.Thread(
            target=listen_and_serve, args=(listener, handler, stop), daemon=True
        )
        serving.start()
        with socket.create_connection(("127.0.0.1", port), timeout=5) as client:
            with client.makefile("rb") as reader:
                client.sendall(_request(b"PING"))
                assert next(parse_stream(reader)).data == BulkReply(b"PONG")
        stop.set()
        serving.join(timeout=5)
        assert not serving.is_alive()
        assert handler.closed is True


def test_main_rejects_cluster_mode():
    assert main(["--cluster"]) == 2