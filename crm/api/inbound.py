from crm.api.records import build_record_router
from crm.dependencies import get_inbound_gateway, get_inbound_repository
from crm.variants import INBOUND

router = build_record_router(INBOUND, get_inbound_repository, get_inbound_gateway)
