"""
Tests for the single-job capture manager.
"""

import pytest

from callcapture.manager import CaptureManager
from callcapture.service.file_recording import FileRecordingService
from callcapture.service.streaming import StreamingService
from callcapture.state.models import (
    CallParams,
    CallUrlInfo,
    CaptureState,
    ServiceStatus,
    SipClientParams,
    StartServiceResult,
)
from callcapture.state.requests import FileRecordingRequest, GatewayRequest, StreamingRequest
from callcapture.utils.config import Config
from conftest import FakeCallSession, FakeExecutor


def make_call_params():
    return CallParams(call_url_info=CallUrlInfo(base_url="https://meet.example.com", call_name="standup"))


class TestCaptureManager:
    """Test CaptureManager."""
    
    @pytest.fixture
    def config(self, tmp_path):
        return Config({
            'recording': {'directory': str(tmp_path / 'recordings')},
            'streaming': {'rtmp_url': 'rtmp://live.example.com/app', 'max_bitrate': 1500},
            'health': {'initial_delay': 5, 'check_interval': 2, 'max_restarts': 1},
        })
    
    @pytest.fixture
    def sessions(self):
        return []
    
    @pytest.fixture
    def executors(self):
        return []
    
    @pytest.fixture
    def manager(self, config, sessions, executors, scheduler):
        def session_factory(call_params):
            session = FakeCallSession(participants=['recorder', 'alice@example.com'])
            sessions.append(session)
            return session
        
        def executor_factory():
            executor = FakeExecutor()
            executors.append(executor)
            return executor
        
        return CaptureManager(
            config,
            session_factory,
            executor_factory=executor_factory,
            scheduler=scheduler,
        )
    
    def test_idle_health(self, manager):
        """Test an idle node reports not busy and healthy."""
        health = manager.health_check()
        
        assert not health.busy
        assert health.is_healthy
    
    def test_start_file_recording(self, manager, sessions):
        """Test a file request starts a file recording job."""
        result = manager.start_service(FileRecordingRequest(make_call_params()))
        
        assert result is StartServiceResult.SUCCESS
        assert manager.busy
        assert isinstance(manager.current_service, FileRecordingService)
        assert sessions[0].joined_calls == ['standup']
    
    def test_busy(self, manager, sessions):
        """Test a second job is rejected while one is running."""
        manager.start_service(FileRecordingRequest(make_call_params()))
        
        result = manager.start_service(FileRecordingRequest(make_call_params()))
        
        assert result is StartServiceResult.BUSY
        assert len(sessions) == 1
    
    def test_health_while_capturing(self, manager):
        """Test health reflects the running job."""
        manager.start_service(FileRecordingRequest(make_call_params()))
        
        health = manager.health_check()
        
        assert health.busy
        assert health.service_status is ServiceStatus.RUNNING
        assert health.capture_state is CaptureState.CAPTURING
        assert health.encoder_running
        assert health.encoder_restarts == 0
    
    def test_health_settings_from_config(self, manager, scheduler):
        """Test the job's health checks use the configured timing."""
        manager.start_service(FileRecordingRequest(make_call_params()))
        
        task = scheduler.health_tasks[0]
        assert task.initial_delay == 5
        assert task.period == 2
    
    def test_stop_service(self, manager, sessions, executors):
        """Test stopping frees the slot for a new job."""
        manager.start_service(FileRecordingRequest(make_call_params()))
        
        manager.stop_service()
        
        assert not manager.busy
        assert sessions[0].leave_count == 1
        assert executors[0].stop_calls == 1
        assert manager.start_service(FileRecordingRequest(make_call_params())) is StartServiceResult.SUCCESS
    
    def test_stop_when_idle(self, manager):
        """Test stopping with no job is a no-op."""
        manager.stop_service()
        
        assert not manager.busy
    
    def test_gateway_not_supported(self, manager, sessions):
        """Test a gateway request fails without joining anything."""
        request = GatewayRequest(make_call_params(), SipClientParams(sip_address='sip:room@example.com'))
        
        result = manager.start_service(request)
        
        assert result is StartServiceResult.ERROR
        assert not manager.busy
        assert sessions == []
    
    def test_join_failure(self, config, scheduler):
        """Test a job that cannot join the call reports ERROR and frees the slot."""
        manager = CaptureManager(
            config,
            lambda call_params: FakeCallSession(join_result=False),
            executor_factory=FakeExecutor,
            scheduler=scheduler,
        )
        
        result = manager.start_service(FileRecordingRequest(make_call_params()))
        
        assert result is StartServiceResult.ERROR
        assert not manager.busy
    
    def test_session_factory_failure(self, config, scheduler):
        """Test an error creating the call session reports ERROR."""
        def broken_factory(call_params):
            raise RuntimeError("no browser available")
        
        manager = CaptureManager(config, broken_factory, executor_factory=FakeExecutor, scheduler=scheduler)
        
        assert manager.start_service(FileRecordingRequest(make_call_params())) is StartServiceResult.ERROR
        assert not manager.busy
    
    def test_streaming_uses_configured_endpoint(self, manager, executors):
        """Test the stream URL and bitrate come from the streaming config."""
        result = manager.start_service(StreamingRequest(make_call_params(), stream_key='abcd-efgh'))
        
        assert result is StartServiceResult.SUCCESS
        assert isinstance(manager.current_service, StreamingService)
        sink = executors[0].launches[0]
        assert sink.url == 'rtmp://live.example.com/app/abcd-efgh'
        assert sink.max_bitrate == 1500
    
    def test_job_error_frees_slot(self, manager, executors, scheduler):
        """Test a job that gives up on its encoder releases the slot."""
        manager.start_service(FileRecordingRequest(make_call_params()))
        executor = executors[0]
        
        for _ in range(2):
            executor.alive = False
            executor.exit_code = 1
            scheduler.tick()
        
        assert not manager.busy
        assert manager.start_service(FileRecordingRequest(make_call_params())) is StartServiceResult.SUCCESS
    
    def test_call_ended_frees_slot(self, manager, sessions):
        """Test the call ending on its own releases the slot."""
        manager.start_service(FileRecordingRequest(make_call_params()))
        
        sessions[0].publish_status(ServiceStatus.FINISHED)
        
        assert not manager.busy
    
    def test_shutdown(self, manager, sessions, scheduler):
        """Test shutdown stops the job and its health checks."""
        manager.start_service(FileRecordingRequest(make_call_params()))
        
        manager.shutdown()
        
        assert not manager.busy
        assert sessions[0].leave_count == 1
        assert scheduler.active_tasks == []
    
    
    def test_service_start_raising_frees_slot(self, manager, monkeypatch):
        """Test an error escaping the job's start reports ERROR and frees the slot."""
        def broken_start(self):
            raise RuntimeError("unexpected failure")
        
        monkeypatch.setattr(FileRecordingService, 'start', broken_start)
        
        result = manager.start_service(FileRecordingRequest(make_call_params()))
        
        assert result is StartServiceResult.ERROR
        assert not manager.busy
        assert manager.health_check().is_healthy
    
    def test_bad_call_name_leaves_call(self, manager, sessions):
        """Test a call name that cannot name a recording ends the job and leaves the call."""
        call_params = CallParams(call_url_info=CallUrlInfo(base_url="https://meet.example.com", call_name=123))
        
        result = manager.start_service(FileRecordingRequest(call_params))
        
        assert result is StartServiceResult.ERROR
        assert not manager.busy
        assert sessions[0].leave_count == 1
        assert manager.start_service(FileRecordingRequest(make_call_params())) is StartServiceResult.SUCCESS
    
    def test_lonely_call_frees_slot(self, config, scheduler):
        """Test the job ends on its own once the recorder is alone in the call."""
        session = FakeCallSession(participants=['recorder'])
        manager = CaptureManager(config, lambda call_params: session, executor_factory=FakeExecutor, scheduler=scheduler)
        
        assert manager.start_service(FileRecordingRequest(make_call_params())) is StartServiceResult.SUCCESS
        
        scheduler.tick(2)
        
        assert not manager.busy
        assert session.leave_count == 1
