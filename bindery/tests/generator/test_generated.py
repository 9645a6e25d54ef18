"""Tests for generated bindings, executed against the loopback transport."""

import asyncio
import os
from dataclasses import dataclass

import pytest

from bindery.generator.loader import load
from bindery.generator.python import render
from bindery.rpc import (
    Code,
    ConstructionError,
    HandlerBidiStream,
    HandlerClientStream,
    HandlerServerStream,
    LoopbackDoer,
    Request,
    Response,
    RpcError,
    memory_pipe,
)

FILE_DIR = os.path.dirname(os.path.realpath(__file__))

BASE_URL = "http://loopback.test/rpc"


@dataclass
class PingRequest:
    number: int


@dataclass
class PingResponse:
    number: int


@dataclass
class SumRequest:
    number: int


@dataclass
class SumResponse:
    sum: int


@dataclass
class CountUpRequest:
    number: int


@dataclass
class CountUpResponse:
    number: int


@dataclass
class CumSumRequest:
    number: int


@dataclass
class CumSumResponse:
    sum: int


def gen_code():
    gbl = globals().copy()

    with open(f"{FILE_DIR}/ping.json") as f:
        unit = load(f.read())[0]

    exec(render(unit), gbl)
    return gbl


GEN = gen_code()


class SimplePing(GEN["UnimplementedPingServiceServer"]):
    """Implements every method with the simplest available signature."""

    async def Ping(self, req: PingRequest) -> PingResponse:
        return PingResponse(req.number)

    async def Sum(self, stream: HandlerClientStream[SumRequest, SumResponse]) -> None:
        total = 0
        async for msg in stream:
            total += msg.number
        await stream.send_response(Response(SumResponse(total), headers={"x-count": "done"}))

    async def CountUp(
        self, req: CountUpRequest, stream: HandlerServerStream[CountUpResponse]
    ) -> None:
        for number in range(1, req.number + 1):
            await stream.send(CountUpResponse(number))

    async def CumSum(self, stream: HandlerBidiStream[CumSumRequest, CumSumResponse]) -> None:
        total = 0
        async for msg in stream:
            total += msg.number
            await stream.send(CumSumResponse(total))


class FullPing(GEN["UnimplementedPingServiceServer"]):
    """Implements Ping with the full signature."""

    async def Ping(self, req: Request[PingRequest]) -> Response[PingResponse]:
        number = req.msg.number * int(req.headers.get("x-factor", "1"))
        return Response(PingResponse(number), headers={"x-seen": "full"})


def _client(*handler_sets):
    doer = LoopbackDoer(*handler_sets)
    return GEN["NewPingServiceClient"](BASE_URL, doer), doer


def describe_adaptive_handler():
    def wraps_simple_implementations(expect):
        handlers = GEN["NewPingServiceHandler"](SimplePing())
        expect([h.procedure for h in handlers]) == [
            "/ping.v1.PingService/Ping",
            "/ping.v1.PingService/Sum",
            "/ping.v1.PingService/CountUp",
            "/ping.v1.PingService/CumSum",
            "/ping.v1.PingService/Fail",
        ]

        async def run():
            client, _ = _client(handlers)
            return await client.Ping(PingRequest(42))

        expect(asyncio.run(run())) == PingResponse(42)

    def binds_full_implementations_directly(expect):
        async def run():
            client, _ = _client(GEN["NewPingServiceHandler"](FullPing()))
            res = await client.Full().Ping(Request(PingRequest(2), headers={"x-factor": "3"}))
            return res

        res = asyncio.run(run())
        expect(res.msg) == PingResponse(6)
        expect(res.headers["x-seen"]) == "full"

    def prefers_the_simple_tier(expect):
        class Both(GEN["UnimplementedPingServiceServer"]):
            async def Ping(self, req):
                return PingResponse(-req.number)

        async def run():
            client, _ = _client(GEN["NewPingServiceHandler"](Both()))
            return await client.Ping(PingRequest(5))

        expect(asyncio.run(run())) == PingResponse(-5)

    def reports_missing_methods(expect):
        class Partial:
            async def Ping(self, req: PingRequest) -> PingResponse:
                return PingResponse(req.number)

        with pytest.raises(ConstructionError) as exc:
            GEN["NewPingServiceHandler"](Partial())
        expect(exc.value.methods) == ["Sum", "CountUp", "CumSum", "Fail"]
        expect(str(exc.value)).contains("ping.v1.PingService")

    def reports_an_empty_implementation(expect):
        with pytest.raises(ConstructionError) as exc:
            GEN["NewPingServiceHandler"](object())
        expect(exc.value.methods) == ["Ping", "Sum", "CountUp", "CumSum", "Fail"]

    def never_binds_streaming_input_to_a_simple_method(expect):
        class SimpleShaped(GEN["UnimplementedPingServiceServer"]):
            async def CumSum(self, req: CumSumRequest) -> CumSumResponse:
                return CumSumResponse(req.number)

        with pytest.raises(ConstructionError) as exc:
            GEN["NewPingServiceHandler"](SimpleShaped())
        expect(exc.value.methods) == ["CumSum"]

    def never_binds_an_untyped_method_to_streaming_input(expect):
        class Untyped(GEN["UnimplementedPingServiceServer"]):
            async def CumSum(self, req):
                return CumSumResponse(req.number)

        with pytest.raises(ConstructionError) as exc:
            GEN["NewPingServiceHandler"](Untyped())
        expect(exc.value.methods) == ["CumSum"]

    def ignores_synchronous_methods(expect):
        class Sync(GEN["UnimplementedPingServiceServer"]):
            def Ping(self, req: PingRequest) -> PingResponse:
                return PingResponse(req.number)

        with pytest.raises(ConstructionError) as exc:
            GEN["NewPingServiceHandler"](Sync())
        expect(exc.value.methods) == ["Ping"]


def describe_full_handler():
    def binds_the_full_interface(expect):
        handlers = GEN["NewFullPingServiceHandler"](FullPing(), response_headers={"x-server": "t"})

        async def run():
            client, _ = _client(handlers)
            return await client.Full().Ping(Request(PingRequest(1)))

        res = asyncio.run(run())
        expect(res.headers) == {"x-server": "t", "x-seen": "full"}

    def reports_missing_methods(expect):
        class Partial:
            async def Ping(self, req: Request[PingRequest]) -> Response[PingResponse]:
                return Response(PingResponse(req.msg.number))

        with pytest.raises(ConstructionError) as exc:
            GEN["NewFullPingServiceHandler"](Partial())
        expect(exc.value.methods) == ["Sum", "CountUp", "CumSum", "Fail"]
        expect(str(exc.value)).contains("ping.v1.PingService")


def describe_unimplemented_server():
    def raises_unimplemented(expect):
        async def run():
            client, _ = _client(GEN["NewPingServiceHandler"](SimplePing()))
            await client.Fail(PingRequest(1))

        with pytest.raises(RpcError) as exc:
            asyncio.run(run())
        expect(exc.value.code) == Code.UNIMPLEMENTED
        expect(exc.value.message) == "ping.v1.PingService.Fail isn't implemented"


def describe_streaming_calls():
    def client_stream(expect):
        async def run():
            client, doer = _client(GEN["NewPingServiceHandler"](SimplePing()))
            stream = client.Sum()
            for number in (1, 2, 3):
                await stream.send(SumRequest(number))
            res = await stream.close_and_receive()
            await doer.aclose()
            return res

        res = asyncio.run(run())
        expect(res.msg) == SumResponse(6)
        expect(res.headers["x-count"]) == "done"

    def server_stream(expect):
        async def run():
            client, doer = _client(GEN["NewPingServiceHandler"](SimplePing()))
            stream = await client.CountUp(CountUpRequest(3))
            numbers = [msg.number async for msg in stream]
            await doer.aclose()
            return numbers

        expect(asyncio.run(run())) == [1, 2, 3]

    def bidi_stream(expect):
        async def run():
            client, doer = _client(GEN["NewPingServiceHandler"](SimplePing()))
            stream = client.CumSum()
            sums = []
            for number in (1, 2, 3):
                await stream.send(CumSumRequest(number))
                sums.append((await stream.receive()).sum)
            await stream.close_send()
            rest = [msg async for msg in stream]
            await doer.aclose()
            return sums, rest

        expect(asyncio.run(run())) == ([1, 3, 6], [])

    def propagates_handler_errors(expect):
        class Failing(SimplePing):
            async def CountUp(self, req: CountUpRequest, stream) -> None:
                await stream.send(CountUpResponse(1))
                raise RpcError(Code.OUT_OF_RANGE, "too far")

        async def run():
            client, doer = _client(GEN["NewPingServiceHandler"](Failing()))
            stream = await client.CountUp(CountUpRequest(3))
            received = [await stream.receive()]
            try:
                await stream.receive()
            finally:
                await doer.aclose()
            return received

        with pytest.raises(RpcError) as exc:
            asyncio.run(run())
        expect(exc.value.code) == Code.OUT_OF_RANGE

    def cancelled_handlers_close_the_stream_and_stay_cancelled(expect):
        class Stuck(SimplePing):
            async def CountUp(
                self, req: CountUpRequest, stream: HandlerServerStream[CountUpResponse]
            ) -> None:
                self.started.set()
                await asyncio.sleep(10)

        async def run():
            impl = Stuck()
            impl.started = asyncio.Event()
            handlers = GEN["NewPingServiceHandler"](impl)
            handler = next(h for h in handlers if h.procedure.endswith("/CountUp"))
            client_end, handler_end = memory_pipe()
            task = asyncio.create_task(handler.implementation(handler_end))
            await client_end.send(CountUpRequest(3))
            await impl.started.wait()
            task.cancel()
            await asyncio.wait([task])
            with pytest.raises(RpcError) as exc:
                await client_end.receive()
            return task.cancelled(), exc.value.code

        expect(asyncio.run(run())) == (True, Code.CANCELED)

    def unimplemented_streams_close_with_an_error(expect):
        class OnlyPing:
            async def Ping(self, req: PingRequest) -> PingResponse:
                return PingResponse(req.number)

        unimplemented = GEN["UnimplementedPingServiceServer"]()
        impl = OnlyPing()
        for name in ("Sum", "CountUp", "CumSum", "Fail"):
            setattr(impl, name, getattr(unimplemented, name))

        async def run():
            client, doer = _client(GEN["NewPingServiceHandler"](impl))
            stream = client.Sum()
            try:
                await stream.close_and_receive()
            finally:
                await doer.aclose()

        with pytest.raises(RpcError) as exc:
            asyncio.run(run())
        expect(exc.value.code) == Code.UNIMPLEMENTED


def describe_client_constructor():
    def rejects_relative_urls(expect):
        with pytest.raises(ConstructionError):
            GEN["NewPingServiceClient"]("/rpc", LoopbackDoer())

    def rejects_unknown_options(expect):
        with pytest.raises(ConstructionError):
            GEN["NewPingServiceClient"](BASE_URL, LoopbackDoer(), retries=3)

    def sends_default_headers(expect):
        async def run():
            doer = LoopbackDoer(GEN["NewPingServiceHandler"](FullPing()))
            client = GEN["NewPingServiceClient"](BASE_URL + "/", doer, headers={"x-factor": "10"})
            return await client.Ping(PingRequest(4))

        expect(asyncio.run(run())) == PingResponse(40)
