import unittest
from unittest.mock import MagicMock, patch

import requests

from quizrelay.channel import ConsoleChannel, HostChannel, InboundMessage
from quizrelay.errors import DeliveryError


def response(status_code, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


class TestHostChannel(unittest.TestCase):
    def setUp(self):
        self.channel = HostChannel("http://host:3000/", secret="token", timeout=5)

    @patch("quizrelay.channel.requests.get")
    def test_fetch_next(self, mock_get):
        mock_get.return_value = response(200, {"id": 7, "message": {"type": "receiveQuestion"}})

        inbound = self.channel.fetch_next()

        self.assertEqual(inbound, InboundMessage(id="7", message={"type": "receiveQuestion"}))
        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], "http://host:3000/api/relay/messages/next")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer token")
        self.assertEqual(kwargs["timeout"], 5)

    @patch("quizrelay.channel.requests.get")
    def test_fetch_next_nothing_usable(self, mock_get):
        cases = [
            response(204),
            response(401),
            response(500, text="boom"),
            response(200, ValueError("bad json")),
            response(200, {"message": {"type": "x"}}),
            response(200, {"id": 1, "message": "text"}),
        ]
        for resp in cases:
            with self.subTest(status=resp.status_code):
                mock_get.return_value = resp
                self.assertIsNone(self.channel.fetch_next())

    @patch("quizrelay.channel.requests.get")
    def test_fetch_next_unreachable(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        self.assertIsNone(self.channel.fetch_next())

        mock_get.side_effect = requests.exceptions.Timeout("slow")
        self.assertIsNone(self.channel.fetch_next())

    @patch("quizrelay.channel.requests.post")
    def test_acknowledge(self, mock_post):
        ack = {"received": True, "status": "processing"}
        mock_post.return_value = response(200)

        self.assertTrue(self.channel.acknowledge("7", ack))
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "http://host:3000/api/relay/messages/7/ack")
        self.assertEqual(kwargs["json"], ack)

        mock_post.return_value = response(500)
        self.assertFalse(self.channel.acknowledge("7", ack))

        mock_post.side_effect = requests.exceptions.ConnectionError("refused")
        self.assertFalse(self.channel.acknowledge("7", ack))

    @patch("quizrelay.channel.requests.post")
    def test_send(self, mock_post):
        message = {"type": "deepseekResponse", "response": '{"answer": "4"}'}
        mock_post.return_value = response(202)

        self.channel.send(message)

        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "http://host:3000/api/relay/responses")
        self.assertEqual(kwargs["json"], message)

    @patch("quizrelay.channel.requests.post")
    def test_send_failures_raise(self, mock_post):
        mock_post.return_value = response(500, text="internal error")
        with self.assertRaises(DeliveryError):
            self.channel.send({"type": "deepseekResponse", "response": "x"})

        mock_post.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(DeliveryError):
            self.channel.send({"type": "deepseekResponse", "response": "x"})

    def test_no_secret_no_auth_header(self):
        self.assertNotIn("Authorization", HostChannel("http://host")._headers)


class TestConsoleChannel(unittest.TestCase):
    @patch("quizrelay.channel.console")
    def test_send_records_and_prints(self, mock_console):
        channel = ConsoleChannel()
        channel.send({"type": "deepseekResponse", "response": "r"})

        self.assertEqual(channel.sent, [{"type": "deepseekResponse", "response": "r"}])
        mock_console.print_json.assert_called_once()


if __name__ == "__main__":
    unittest.main()
