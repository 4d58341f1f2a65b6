import pytest

from waotp.channel.base import MessagingChannel
from waotp.channel.models import SendResult, SendStatus
from waotp.channel.readiness import ReadinessGate
from waotp.config import Settings


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingChannel(MessagingChannel):
    """Channel double that records messages and returns a fixed result."""

    name = "recording"

    def __init__(self, result: SendResult = None, ready_on_init: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.result = result or SendResult(status=SendStatus.SENT, message_id="msg-1")
        self.ready_on_init = ready_on_init
        self.sent = []

    async def initialize(self, gate: ReadinessGate) -> None:
        await super().initialize(gate)
        if self.ready_on_init:
            gate.on_connecting()
            gate.on_ready()

    async def send_message(self, address: str, text: str) -> SendResult:
        self.sent.append((address, text))
        return self.result

    @property
    def last_code(self) -> str:
        return self.sent[-1][1].rsplit(" ", 1)[-1]


class FakePipeline:
    """Queues commands and applies them to a FakeRedis on execute."""

    def __init__(self, redis, transaction):
        self.redis = redis
        self.transaction = transaction
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.commands = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.commands.append((name, args, kwargs))
            return self

        return queue

    async def execute(self):
        if self.redis.fail_on_execute:
            self.commands = []
            raise ConnectionError("connection lost")
        self.redis.executed.append([name for name, _, _ in self.commands])
        results = [await getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in self.commands]
        self.commands = []
        return results


class FakeRedis:
    """Minimal async Redis double covering the commands the store uses."""

    def __init__(self):
        self.hashes = {}
        self.sets = {}
        self.ttls = {}
        self.executed = []
        self.fail_on_execute = False

    def pipeline(self, transaction=True):
        return FakePipeline(self, transaction)

    async def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def sadd(self, key, *members):
        self.sets.setdefault(key, set()).update(members)
        return len(members)

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def srem(self, key, *members):
        current = self.sets.get(key, set())
        removed = len(current & set(members))
        current.difference_update(members)
        return removed

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.hashes.pop(key, None) is not None:
                removed += 1
            if self.sets.pop(key, None) is not None:
                removed += 1
        return removed

    async def ping(self):
        return True

    async def aclose(self):
        return None

    def evict(self, key):
        """Simulate Redis expiring a key on its own."""
        self.hashes.pop(key, None)
        self.sets.pop(key, None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gate():
    return ReadinessGate()


@pytest.fixture
def ready_gate():
    gate = ReadinessGate()
    gate.on_connecting()
    gate.on_ready()
    return gate


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def settings():
    return Settings(
        store_backend="memory",
        channel_backend="console",
        store_connect_attempts=1,
        log_json=False,
    )
