import io
import os
import socket
import threading
import unittest
import logging

from tempfile import TemporaryDirectory
from unittest import mock

import tftpfetch
from tftpfetch import Outcome
from tftpfetch.packet import types
from tftpfetch.packet.factory import PacketFactory

log = logging.getLogger('tftpfetch')
log.setLevel(logging.INFO)

# console handler
handler = logging.StreamHandler()
handler.setLevel(logging.DEBUG)
default_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
handler.setFormatter(default_formatter)
log.addHandler(handler)

class ScriptedServer(threading.Thread):
    """Serves a single read request on localhost, lock-step, from a fresh
    transfer port. The blksize and tsize options are honoured when
    negotiate is set, otherwise ignored."""

    def __init__(self, content=b"", negotiate=True, error=None):
        super().__init__(daemon=True)
        self.content = content
        self.negotiate = negotiate
        self.error = error
        self.request = None
        self.acks = []
        self.factory = PacketFactory()
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(('127.0.0.1', 0))
        self.sock.settimeout(5)
        self.port = self.sock.getsockname()[1]

    def run(self):
        try:
            self.serve()
        finally:
            self.sock.close()

    def serve(self):
        buffer, client = self.sock.recvfrom(65536)
        self.request = self.factory.parse(buffer)

        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as tid:
            tid.bind(('127.0.0.1', 0))
            tid.settimeout(5)

            if self.error:
                tid.sendto(types.Error(*self.error).encode().buffer, client)
                return

            blksize = 512
            if self.negotiate and self.request.options:
                accepted = {}
                if 'blksize' in self.request.options:
                    blksize = int(self.request.options['blksize'])
                    accepted['blksize'] = blksize
                if 'tsize' in self.request.options:
                    accepted['tsize'] = len(self.content)
                oack = types.OptionAck()
                oack.options = accepted
                self.exchange(tid, client, oack.encode().buffer, 0)

            block = 1
            offset = 0
            while True:
                pkt = types.Data()
                pkt.blocknumber = block % 65536
                pkt.data = self.content[offset:offset + blksize]
                self.exchange(tid, client, pkt.encode().buffer, pkt.blocknumber)
                if len(pkt.data) < blksize:
                    break
                offset += blksize
                block += 1

    def exchange(self, sock, client, buffer, blocknumber):
        sock.sendto(buffer, client)
        while True:
            reply, _ = sock.recvfrom(65536)
            ack = self.factory.parse(reply)
            if isinstance(ack, types.Ack):
                self.acks.append(ack.blocknumber)
                if ack.blocknumber == blocknumber:
                    return


class TestTftpfetchClient(unittest.TestCase):

    def setUp(self):
        self.root = TemporaryDirectory()
        self.output = os.path.join(self.root.name, 'output')

    def tearDown(self):
        self.root.cleanup()

    def client_download(self, server, options=None, output=None, **kwargs):
        """Fire up the server and run a download against it."""

        server.start()
        client = tftpfetch.TftpClient('127.0.0.1', server.port, options)
        try:
            result = client.download('readme.txt', output or self.output, **kwargs)
        finally:
            server.join(10)
        return client, result

    def contents(self):
        with open(self.output, 'rb') as fileobj:
            return fileobj.read()

    def test_download_small_file(self):
        server = ScriptedServer(b"0123456789", negotiate=False)
        client, result = self.client_download(server)

        self.assertEqual(result, (Outcome.SUCCESS, ""))
        self.assertEqual(self.contents(), b"0123456789")
        self.assertEqual(server.request.filename, 'readme.txt')
        self.assertEqual(server.request.mode, 'octet')
        self.assertEqual(server.request.options, {'blksize': '65464'})
        self.assertEqual(server.acks, [1])

    def test_download_default_blksize_negotiated(self):
        content = os.urandom(200000)
        server = ScriptedServer(content)
        client, result = self.client_download(server)

        self.assertEqual(result.outcome, Outcome.SUCCESS)
        self.assertEqual(self.contents(), content)
        self.assertEqual(client.context.parameters.blksize, 65464)
        self.assertEqual(server.acks, [0, 1, 2, 3, 4])

    def test_download_blksize(self):
        content = os.urandom(3000)
        for blksize in [512, 1024, 2048, 4096]:
            server = ScriptedServer(content)
            client, result = self.client_download(server, {'blksize': blksize})

            self.assertEqual(result.outcome, Outcome.SUCCESS)
            self.assertEqual(self.contents(), content)
            self.assertEqual(client.context.parameters.blksize, blksize)
            self.assertEqual(server.acks, list(range(0, 3000 // blksize + 2)))

    def test_download_exact_multiple(self):
        content = b"x" * 1024
        server = ScriptedServer(content, negotiate=False)
        client, result = self.client_download(server, {})

        self.assertEqual(result.outcome, Outcome.SUCCESS)
        self.assertEqual(self.contents(), content)
        self.assertEqual(server.acks, [1, 2, 3])
        self.assertEqual(server.request.options, {})

    def test_download_tsize(self):
        content = os.urandom(5000)
        server = ScriptedServer(content)
        client, result = self.client_download(server, {'blksize': 1024, 'tsize': True})

        self.assertEqual(result.outcome, Outcome.SUCCESS)
        self.assertEqual(server.request.options, {'blksize': '1024', 'tsize': '0'})
        self.assertEqual(client.context.parameters.tsize, 5000)

    def test_download_fd(self):
        output = io.BytesIO()
        server = ScriptedServer(b"file like output")
        client, result = self.client_download(server, output=output)

        self.assertEqual(result.outcome, Outcome.SUCCESS)
        self.assertEqual(output.getvalue(), b"file like output")

    def test_download_packethook(self):
        received = []

        def progresshook(pkt):
            if isinstance(pkt, types.Data):
                received.append(len(pkt.data))

        server = ScriptedServer(b"y" * 1300)
        client, result = self.client_download(server, {'blksize': 512}, packethook=progresshook)

        self.assertEqual(result.outcome, Outcome.SUCCESS)
        self.assertEqual(received, [512, 512, 276])

    def test_download_file_not_found(self):
        server = ScriptedServer(error=(1, "File not found"))
        client, result = self.client_download(server)

        self.assertEqual(result.outcome, Outcome.FILE_NOT_FOUND)
        self.assertIn("File Not Found", result.message)
        self.assertFalse(os.path.exists(self.output))

    def test_download_access_violation(self):
        server = ScriptedServer(error=(2, "Permission denied"))
        client, result = self.client_download(server)

        self.assertEqual(result.outcome, Outcome.ACCESS_VIOLATION)
        self.assertEqual(result.message, "transfer error: Access Violation (Permission denied)")

    def test_download_timeout(self):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as silent:
            silent.bind(('127.0.0.1', 0))
            silent.settimeout(0.5)

            client = tftpfetch.TftpClient('127.0.0.1', silent.getsockname()[1])
            result = client.download('readme.txt', self.output, timeout=0.1, retries=3)

            self.assertEqual(result.outcome, Outcome.INTERNAL_ERROR)
            self.assertIn("timeout", result.message)

            requests = 0
            try:
                while True:
                    silent.recvfrom(65536)
                    requests += 1
            except socket.timeout:
                pass
            self.assertEqual(requests, 3)

    def test_fetch(self):
        server = ScriptedServer(b"fetched over the default port")
        server.start()
        try:
            with mock.patch('tftpfetch.client.DEF_TFTP_PORT', server.port):
                outcome, message = tftpfetch.fetch('127.0.0.1', 'readme.txt', self.output)
        finally:
            server.join(10)

        self.assertEqual(outcome, Outcome.SUCCESS)
        self.assertEqual(message, "")
        self.assertEqual(self.contents(), b"fetched over the default port")

    def test_invalid_blksize(self):
        for blksize in (0, 7, 65465):
            with self.assertRaises(tftpfetch.TftpException):
                tftpfetch.TftpClient('127.0.0.1', options={'blksize': blksize})

if __name__ == '__main__':
    unittest.main()
