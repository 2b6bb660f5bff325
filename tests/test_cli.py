from types import SimpleNamespace

import main
from models import PaymentIntent


class FakeDonations:
    def __init__(self):
        self.intents = []

    async def create_payment_intent(self, amount, campaign_id, is_anonymous=False, donor_email=None):
        self.intents.append((amount, campaign_id, is_anonymous, donor_email))
        return PaymentIntent("pi_1_secret", "pi_1", amount, campaign_id)

    async def my_donations(self):
        return {"made": [{"_id": "d1", "amount": 50, "donor": {"name": "Asha"}}], "received": []}

    async def campaign_donations(self, campaign_id):
        return [{"_id": "d2", "amount": "20", "isAnonymous": True}, {"_id": "d3", "amount": 5}]


def test_donate_arguments():
    args = main.build_parser().parse_args(["donate", "c1", "25.5", "--anonymous", "--email", "a@b.co"])
    assert args.handler is main.cmd_donate
    assert (args.campaign_id, args.amount, args.anonymous, args.email) == ("c1", 25.5, True, "a@b.co")


async def test_donate_creates_payment_intent(capsys):
    app = SimpleNamespace(donations=FakeDonations())
    args = main.build_parser().parse_args(["donate", "c1", "10"])

    await args.handler(app, args)

    assert app.donations.intents == [(10.0, "c1", False, None)]
    assert "pi_1" in capsys.readouterr().out


async def test_donations_lists_campaign_donations(capsys):
    app = SimpleNamespace(donations=FakeDonations())
    args = main.build_parser().parse_args(["donations", "--campaign", "c1"])

    await args.handler(app, args)

    out = capsys.readouterr().out
    assert "anonymous" in out
    assert "2 donation(s)" in out


async def test_donations_defaults_to_own(capsys):
    app = SimpleNamespace(donations=FakeDonations())
    args = main.build_parser().parse_args(["donations"])

    await args.handler(app, args)

    out = capsys.readouterr().out
    assert "Asha" in out
    assert "1 donation(s)" in out
