import app.repos.admin_repo as ar


class _Query:
    def __init__(self, value):
        self.value = value

    def filter(self, *args, **kwargs):
        return self

    def scalar(self):
        return self.value


class _DB:
    def __init__(self, values):
        self.values = iter(values)

    def query(self, *args, **kwargs):
        return _Query(next(self.values))


def test_get_stats_returns_expected_shape():
    out = ar.get_stats(_DB([10, 3, 2, 1, 50, 7, 12345]))
    assert out == {
        "total_users": 10,
        "premium_users": 3,
        "active_subscriptions": 2,
        "total_applications_tracked": 50,
        "companies": 7,
        "total_revenue": 123.45,
        "monthly_recurring_revenue": ar.PREMIUM_MONTHLY_PRICE,
    }


def test_get_stats_treats_empty_aggregates_as_zero():
    out = ar.get_stats(_DB([None] * 7))
    assert out["total_users"] == 0
    assert out["total_revenue"] == 0
    assert out["monthly_recurring_revenue"] == 0
