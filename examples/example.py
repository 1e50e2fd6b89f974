#!/usr/bin/env python3
"""
Example script demonstrating the waf_builder Python API.

This script shows how to:
1. Define IP sets, a rule group and a web ACL programmatically
2. Check the capacity the rules consume
3. Attach logging and protect a load balancer
4. Synthesize a CloudFormation template
"""

from waf_builder import DefaultAction, ManagedRuleGroup, Rule, RuleAction, RuleGroup, Scope, Statement, Template, WebACL
from waf_builder.core.actions import CustomResponseBody
from waf_builder.core.association import ApplicationLoadBalancer
from waf_builder.core.ip_set import IPSet
from waf_builder.core.logging_configuration import (
    LogDestinationConfig,
    LoggingFilter,
    LoggingFilterActionConditionAction,
    LoggingFilterCondition,
    LoggingFilterConfiguration,
)
from waf_builder.core.statements import FieldToMatch, MatchCondition, PositionalConstraint
from waf_builder.synth.base import LogDestinationService, RemovalPolicy

ALB_ARN = "arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/shop/50dc6c495c0c9188"


def main():
    """Main example function."""

    print("🛡️  waf_builder Example - Protecting a web shop")
    print("=" * 60)

    template = Template(description="Web shop protection")

    # 1. IP sets and rule group
    print("\n📋 Creating IP set and rule group...")
    office = IPSet(
        name="office-addresses",
        scope=Scope.REGIONAL,
        addresses=["203.0.113.0/24", "198.51.100.10"],
    ).emit(template)
    print(f"✓ IP set {office.logical_id}: {', '.join(office.ip_set.addresses)}")

    admin_group = create_admin_rule_group(office).emit(template)
    print(
        f"✓ Rule group {admin_group.logical_id} "
        f"(capacity {admin_group.rule_group.capacity})"
    )

    # 2. Web ACL
    print("\n🔍 Creating web ACL...")
    web_acl = create_web_acl(admin_group)
    print(f"✓ Web ACL '{web_acl.name}' uses {web_acl.capacity} of 1500 WCU")
    for prioritized in web_acl.prioritized_rules:
        print(f"  {prioritized.priority}: {prioritized.name}")

    handle = web_acl.emit(template)

    # 3. Logging and association
    print("\n📝 Attaching logging and protecting the load balancer...")
    handle.set_logging_configuration(
        LogDestinationConfig(
            log_destination_service=LogDestinationService.CLOUDWATCH,
            log_suffix="shop",
            retention_days=90,
            removal_policy=RemovalPolicy.DELETE,
        ),
        filter_policy=LoggingFilterConfiguration.default_drop(
            [
                LoggingFilter.keep_if_meets_any(
                    [
                        LoggingFilterCondition.on_action(LoggingFilterActionConditionAction.BLOCK),
                        LoggingFilterCondition.on_label("shop:admin-attempt"),
                    ]
                )
            ]
        ),
        redacted_fields=[FieldToMatch.single_header("authorization")],
    )
    handle.attach_to(ApplicationLoadBalancer(name="shop-alb", arn=ALB_ARN))
    print(f"✓ {len(template.resources)} resources in the template")

    # 4. Synthesize
    print("\n💾 Writing template...")
    template.write("shop-waf.template.json")
    print("✓ Template written to shop-waf.template.json")

    print("\n🎉 Example completed successfully!")
    print("\nNext steps:")
    print("  1. Review shop-waf.template.json")
    print("  2. Or describe the same stack in YAML: waf-builder create-example stack.yaml")
    print("  3. Run: waf-builder synth stack.yaml --output-file template.json")


def create_admin_rule_group(office) -> RuleGroup:
    """Only office addresses may reach /admin; others are labeled and challenged."""

    admin_path = Statement.inspect(
        FieldToMatch.uri_path(),
        MatchCondition.string_match("/admin", PositionalConstraint.STARTS_WITH),
        ["LOWERCASE"],
    )

    label_outsiders = Rule.regular(
        "label-admin-attempts",
        RuleAction.count(),
        Statement.all_of(admin_path, Statement.ip_set_match(office, negate=True)),
        labels=["shop:admin-attempt"],
    )
    challenge_outsiders = Rule.regular(
        "challenge-admin-attempts",
        RuleAction.challenge(immunity_time_seconds=300),
        Statement.label_match("shop:admin-attempt"),
    )

    return RuleGroup(
        name="admin-access",
        scope=Scope.REGIONAL,
        rules=[label_outsiders, challenge_outsiders],
        description="Keep the admin area to the office",
    )


def create_web_acl(admin_group) -> WebACL:
    """Managed protections first, then rate limiting and the shop's own rules."""

    too_many = CustomResponseBody(
        content_type="APPLICATION_JSON", content='{"error": "too many requests"}'
    )

    return WebACL(
        name="shop",
        scope=Scope.REGIONAL,
        default_action=DefaultAction.allow(),
        rules=[
            ManagedRuleGroup.ip_reputation(),
            ManagedRuleGroup.core_rule_set(excluded_rules=["SizeRestrictions_BODY"]),
            ManagedRuleGroup.known_bad_inputs(),
            Rule.rate_based(
                "limit-per-ip",
                1000,
                evaluation_window_sec=60,
                action=RuleAction.block(response_code=429, response_body=too_many),
            ),
            Rule.regular("geo-block", RuleAction.block(), Statement.geo_match(["KP", "IR"])),
            admin_group.reference(),
        ],
        tags={"application": "shop"},
    )


if __name__ == "__main__":
    main()
