from enum import StrEnum


class UserType(StrEnum):
    individual = "individual"
    business = "business"


class Gender(StrEnum):
    male = "male"
    female = "female"
    other = "other"
    prefer_not_to_say = "prefer_not_to_say"


class Segment(StrEnum):
    new = "new"
    regular = "regular"
    vip = "vip"
    at_risk = "at_risk"


class AccountStatus(StrEnum):
    active = "active"
    suspended = "suspended"
    closed = "closed"


class PaymentTerms(StrEnum):
    immediate = "immediate"
    net_15 = "net_15"
    net_30 = "net_30"
    net_60 = "net_60"
    net_90 = "net_90"
