from typing import List

from stackplan.config import SiteConfig
from stackplan.models.declaration import HostedZone, RecordSet, ResourceDeclaration, ref


def delegated_zone(cfg: SiteConfig) -> List[ResourceDeclaration]:
    """Hosted zone for cfg.domain_name plus an NS record set for its name servers."""
    zone = HostedZone(name="HostedZone", zone_name=cfg.domain_name)
    declarations: List[ResourceDeclaration] = [zone]

    if cfg.name_servers:
        declarations.append(RecordSet(
            name="NSRecordSet",
            zone=ref(zone),
            record_name=cfg.domain_name,
            record_type="NS",
            values=tuple(cfg.name_servers),
        ))

    return declarations
