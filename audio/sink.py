# audio/sink.py
from typing import Any

class SinkError(Exception):
    """音源操作失敗（例如對已結束的 voice 再次 release）"""

class AudioSink:
    """
    發聲後端介面：
    - start_tone(freq, attack_s, level) -> handle（振盪器 + 增益）
    - release(handle, release_s, stop_s) 淡出後硬停；handle 已失效時丟 SinkError
    """
    def start_tone(self, freq: float, attack_s: float, level: float) -> Any:
        raise NotImplementedError

    def release(self, handle: Any, release_s: float, stop_s: float) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass
