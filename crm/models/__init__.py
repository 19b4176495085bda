"""Database models package"""
from crm.models.record_store import MotorRecordStore, RecordStore, build_search_query

__all__ = [
    'MotorRecordStore',
    'RecordStore',
    'build_search_query'
]
