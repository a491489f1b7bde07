"""
Static website hosting: S3 bucket served through CloudFront over HTTPS.

The hosted zone already exists (Route 53 creates one when a domain is
registered there), so it is looked up rather than declared.
"""
from typing import List

from stackplan.config import SiteConfig
from stackplan.models.declaration import (
    AliasRecord,
    Bucket,
    BucketDeployment,
    BucketPolicy,
    Certificate,
    Distribution,
    HostedZoneLookup,
    OriginAccessIdentity,
    RemovalPolicy,
    ResourceDeclaration,
    ref,
)


def static_website(cfg: SiteConfig) -> List[ResourceDeclaration]:
    apex = cfg.apex_domain
    aliases = (apex, *cfg.subdomain_names)

    zone = HostedZoneLookup(name="HostedZone", domain_name=apex)

    # bucket names are global
    bucket = Bucket(
        name="WebsiteBucket",
        bucket_name=f"static-website-bucket-{apex}",
        website_index_document="index.html",
        website_error_document="error.html",
        removal_policy=RemovalPolicy.DESTROY,
    )

    certificate = Certificate(
        name="WebsiteCertificate",
        domain_name=apex,
        subject_alternative_names=tuple(cfg.subdomain_names),
        certificate_name="Static Website Certificate",
        validation_zone=ref(zone),
    )

    oai = OriginAccessIdentity(name="OAI", comment=f"Access to {bucket.bucket_name}")

    distribution = Distribution(
        name="WebsiteDistribution",
        origin_bucket=ref(bucket),
        origin_access_identity=ref(oai),
        certificate=ref(certificate),
        aliases=aliases,
        viewer_protocol_policy="redirect-to-https",
    )

    policy = BucketPolicy(
        name="WebsiteBucketPolicy",
        bucket=ref(bucket),
        actions=("s3:GetObject",),
        principal=ref(oai, "S3CanonicalUserId"),
    )

    apex_a = AliasRecord(
        name="CloudfrontDistributionAAliasRecord",
        zone=ref(zone),
        record_name=apex,
        record_type="A",
        target=ref(distribution),
    )
    apex_aaaa = AliasRecord(
        name="CloudfrontDistributionAaaaAliasRecord",
        zone=ref(zone),
        record_name=apex,
        record_type="AAAA",
        target=ref(distribution),
    )

    declarations: List[ResourceDeclaration] = [
        zone, bucket, certificate, oai, distribution, policy, apex_a, apex_aaaa,
    ]

    # subdomains alias the apex records instead of the distribution
    for sub, fqdn in zip(cfg.subdomains, cfg.subdomain_names):
        declarations.append(AliasRecord(
            name=f"{sub}ARecord",
            zone=ref(zone),
            record_name=fqdn,
            record_type="A",
            target=ref(apex_a),
        ))
        declarations.append(AliasRecord(
            name=f"{sub}AaaaRecord",
            zone=ref(zone),
            record_name=fqdn,
            record_type="AAAA",
            target=ref(apex_aaaa),
        ))

    declarations.append(BucketDeployment(
        name="DeployWebsite",
        sources=(cfg.website_build_path,),
        destination_bucket=ref(bucket),
    ))

    return declarations
