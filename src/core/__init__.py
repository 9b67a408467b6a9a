"""StacksQuest Core — 퀘스트 진행 규칙과 도메인 모델 (DB 무관)"""
__version__ = "0.1.0"
