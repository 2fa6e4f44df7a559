"""
Tests for DNSBackend lookups against the system resolver and a configured nameserver.
"""

import asyncio
import socket
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import dns.exception
import dns.name
import dns.rdatatype
import dns.resolver
import dns.reversename

from dnsenrich.dns import (
    DNSBackend,
    NotFoundError,
    ResolutionError,
    ResolverConfig,
    ResolveTimeoutError,
    TransportError,
)


class TestSystemResolver(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.backend = DNSBackend()

    def tearDown(self):
        self.backend.close()

    def test_no_dnspython_resolver(self):
        self.assertIsNone(self.backend.resolver)

    @patch('dnsenrich.dns._core.socket.getaddrinfo')
    async def test_lookups_run_on_backend_threads(self, mock_getaddrinfo):
        seen = []

        def fake_getaddrinfo(*args):
            seen.append(threading.current_thread().name)
            return [(socket.AF_INET, socket.SOCK_STREAM, 6, '', ('10.0.0.1', 0))]

        mock_getaddrinfo.side_effect = fake_getaddrinfo

        await self.backend.getaddress('example.com')

        self.assertTrue(seen[0].startswith('dnsenrich'))

    @patch('dnsenrich.dns._core.socket.getaddrinfo')
    async def test_close_does_not_wait_for_lookups(self, mock_getaddrinfo):
        release = threading.Event()
        self.addCleanup(release.set)
        mock_getaddrinfo.side_effect = lambda *args: release.wait(5)

        task = asyncio.ensure_future(self.backend.getaddress('slow.example'))
        await asyncio.sleep(0.05)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        started = time.monotonic()
        self.backend.close()

        self.assertLess(time.monotonic() - started, 1.0)

    @patch('dnsenrich.dns._core.socket.getaddrinfo')
    async def test_getaddress_prefers_ipv4(self, mock_getaddrinfo):
        mock_getaddrinfo.return_value = [
            (socket.AF_INET6, socket.SOCK_STREAM, 6, '', ('2606:2800:220:1::1', 0, 0, 0)),
            (socket.AF_INET, socket.SOCK_STREAM, 6, '', ('93.184.216.34', 0)),
        ]

        address = await self.backend.getaddress('example.com')

        self.assertEqual(address, '93.184.216.34')
        mock_getaddrinfo.assert_called_once_with('example.com', None, 0, socket.SOCK_STREAM)

    @patch('dnsenrich.dns._core.socket.getaddrinfo')
    async def test_getaddress_ipv6_only(self, mock_getaddrinfo):
        mock_getaddrinfo.return_value = [
            (socket.AF_INET6, socket.SOCK_STREAM, 6, '', ('fe80::1%eth0', 0, 0, 2)),
        ]

        self.assertEqual(await self.backend.getaddress('v6.example'), 'fe80::1')

    @patch('dnsenrich.dns._core.socket.getaddrinfo')
    async def test_getaddress_not_found(self, mock_getaddrinfo):
        mock_getaddrinfo.side_effect = socket.gaierror(socket.EAI_NONAME, 'Name or service not known')

        with self.assertRaises(NotFoundError) as ctx:
            await self.backend.getaddress('nonexistent.invalid')
        self.assertEqual(ctx.exception.query, 'nonexistent.invalid')

    @patch('dnsenrich.dns._core.socket.getaddrinfo')
    async def test_getaddress_temporary_failure_is_timeout(self, mock_getaddrinfo):
        mock_getaddrinfo.side_effect = socket.gaierror(socket.EAI_AGAIN, 'Temporary failure')

        with self.assertRaises(ResolveTimeoutError):
            await self.backend.getaddress('example.com')

    @patch('dnsenrich.dns._core.socket.getaddrinfo')
    async def test_getaddress_socket_error(self, mock_getaddrinfo):
        mock_getaddrinfo.side_effect = OSError('network unreachable')

        with self.assertRaises(TransportError):
            await self.backend.getaddress('example.com')

    @patch('dnsenrich.dns._core.socket.gethostbyaddr')
    async def test_getname(self, mock_gethostbyaddr):
        mock_gethostbyaddr.return_value = ('dns.google', [], ['8.8.8.8'])

        self.assertEqual(await self.backend.getname('8.8.8.8'), 'dns.google')

    @patch('dnsenrich.dns._core.socket.gethostbyaddr')
    async def test_getname_not_found(self, mock_gethostbyaddr):
        mock_gethostbyaddr.side_effect = socket.herror(1, 'Unknown host')

        with self.assertRaises(NotFoundError):
            await self.backend.getname('10.0.0.1')

    @patch('dnsenrich.dns._core.socket.gethostbyaddr')
    async def test_getname_socket_timeout(self, mock_gethostbyaddr):
        mock_gethostbyaddr.side_effect = socket.timeout('timed out')

        with self.assertRaises(ResolveTimeoutError) as ctx:
            await self.backend.getname('10.0.0.1')
        self.assertIsInstance(ctx.exception, TimeoutError)


def _a(address):
    record = MagicMock()
    record.address = address
    return record


def _ptr(target):
    record = MagicMock()
    record.target = dns.name.from_text(target)
    return record


class TestNameserverResolver(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.hostsfile = Path(self.tmpdir.name) / 'hosts'
        self.hostsfile.write_text(
            '127.0.0.1 localhost\n'
            '192.0.2.10 gateway.lan gateway\n'
        )
        self.backend = DNSBackend(
            ResolverConfig(nameserver='192.0.2.53', timeout=1.5, hostsfile=str(self.hostsfile))
        )
        self.resolve = AsyncMock()
        self.backend.resolver.resolve = self.resolve

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_resolver_settings(self):
        resolver = self.backend.resolver
        self.assertEqual(resolver.search, [])
        self.assertEqual(resolver.ndots, 1)
        self.assertEqual(resolver.lifetime, 1.5)

    async def test_getaddress_a_record(self):
        self.resolve.return_value = [_a('93.184.216.34')]

        self.assertEqual(await self.backend.getaddress('example.com'), '93.184.216.34')
        self.resolve.assert_awaited_once_with(
            qname='example.com',
            rdtype=dns.rdatatype.A,
            search=False,
            lifetime=1.5,
        )

    async def test_getaddress_falls_back_to_aaaa(self):
        self.resolve.side_effect = [dns.resolver.NoAnswer(), [_a('2001:db8::1')]]

        self.assertEqual(await self.backend.getaddress('v6.example'), '2001:db8::1')
        self.assertEqual(self.resolve.await_count, 2)
        self.assertEqual(self.resolve.await_args.kwargs['rdtype'], dns.rdatatype.AAAA)

    async def test_getaddress_no_address_records(self):
        self.resolve.side_effect = [dns.resolver.NoAnswer(), dns.resolver.NoAnswer()]

        with self.assertRaises(NotFoundError):
            await self.backend.getaddress('empty.example')

    async def test_getaddress_hosts_file_first(self):
        self.assertEqual(await self.backend.getaddress('gateway'), '192.0.2.10')
        self.resolve.assert_not_awaited()

    async def test_error_translation(self):
        cases = (
            (dns.resolver.NXDOMAIN(), NotFoundError),
            (dns.exception.Timeout(), ResolveTimeoutError),
            (dns.resolver.NoNameservers(), TransportError),
            (dns.exception.SyntaxError(), ResolutionError),
            (ConnectionRefusedError(), TransportError),
        )
        for error, expected in cases:
            with self.subTest(error=type(error).__name__):
                self.resolve.side_effect = error
                with self.assertRaises(expected):
                    await self.backend.getaddress('example.com')

    async def test_getname_ptr_record(self):
        self.resolve.return_value = [_ptr('dns.google.')]

        self.assertEqual(await self.backend.getname('8.8.8.8'), 'dns.google')
        kwargs = self.resolve.await_args.kwargs
        self.assertEqual(kwargs['qname'], dns.reversename.from_address('8.8.8.8'))
        self.assertEqual(kwargs['rdtype'], dns.rdatatype.PTR)

    async def test_hosts_file_read_at_construction(self):
        self.hostsfile.unlink()

        self.assertEqual(await self.backend.getaddress('gateway.lan'), '192.0.2.10')
        self.resolve.assert_not_awaited()

    async def test_getname_hosts_file_first(self):
        self.assertEqual(await self.backend.getname('192.0.2.10'), 'gateway.lan')
        self.resolve.assert_not_awaited()

    async def test_getname_nxdomain(self):
        self.resolve.side_effect = dns.resolver.NXDOMAIN()

        with self.assertRaises(NotFoundError):
            await self.backend.getname('10.0.0.1')


if __name__ == '__main__':
    unittest.main()
