"""
Shared fixtures and fakes for the test suite.
"""

import time

import pytest

from callcapture.service.call_session import CallSession
from callcapture.state.models import CallLoginParams, CallParams, CallUrlInfo
from callcapture.utils.exceptions import ProcessLaunchError


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class ManualTask:
    """Scheduled task that only runs when the test ticks the scheduler."""
    
    def __init__(self, func, initial_delay, period, name):
        self.func = func
        self.initial_delay = initial_delay
        self.period = period
        self.name = name
        self.cancelled = False
        self.runs = 0
    
    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by hand, one tick at a time."""
    
    def __init__(self):
        self.tasks = []
    
    def schedule_at_fixed_rate(self, func, initial_delay, period, name='scheduled-task'):
        task = ManualTask(func, initial_delay, period, name)
        self.tasks.append(task)
        return task
    
    @property
    def active_tasks(self):
        return [task for task in self.tasks if not task.cancelled]
    
    @property
    def health_tasks(self):
        return [task for task in self.active_tasks if task.name.endswith('-health')]
    
    def find_task(self, name):
        return next(task for task in self.tasks if task.name == name)
    
    def tick(self, times: int = 1):
        """Run every active task once per tick."""
        for _ in range(times):
            for task in self.active_tasks:
                if not task.cancelled:
                    task.runs += 1
                    task.func()
    
    def shutdown(self):
        for task in self.tasks:
            task.cancel()


class FakeCallSession(CallSession):
    """Call session that records what the service asked of it."""
    
    def __init__(self, join_result=True, participants=None):
        super().__init__()
        self.join_result = join_result
        self.participants = participants or []
        self.joined_calls = []
        self.leave_count = 0
    
    def join_call(self, call_name):
        self.joined_calls.append(call_name)
        return self.join_result
    
    def get_participants(self):
        return list(self.participants)
    
    def _leave_call(self):
        self.leave_count += 1


class FakeExecutor:
    """
    Stand-in for ProcessExecutor.
    
    Tests flip healthy/alive/exit_code to simulate the encoder.
    """
    
    def __init__(self):
        self.launches = []
        self.stop_calls = 0
        self.kill_attempts = 0
        self.healthy = True
        self.alive = False
        self.exit_code = None
        self.fail_launch = False
        self.on_stop = None
    
    def launch(self, params, sink):
        if self.fail_launch:
            raise ProcessLaunchError("ffmpeg not found")
        if self.alive:
            self.stop()
        self.launches.append(sink)
        self.alive = True
        self.exit_code = None
    
    def is_alive(self):
        return self.alive
    
    def is_healthy(self):
        return self.alive and self.healthy
    
    def get_exit_code(self):
        return None if self.alive else self.exit_code
    
    def stop(self):
        if self.on_stop:
            self.on_stop()
        self.stop_calls += 1
        if self.alive:
            self.kill_attempts += 1
            self.alive = False
            self.exit_code = 255
        return self.exit_code


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def call_session():
    return FakeCallSession(participants=['alice@example.com', 'bob@example.com'])


@pytest.fixture
def call_params():
    return CallParams(
        call_url_info=CallUrlInfo(base_url='https://meet.example.com', call_name='standup'),
        call_login_params=CallLoginParams(domain='recorder.example.com', username='recorder', password='secret'),
    )
