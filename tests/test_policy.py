import tempfile
import unittest
from pathlib import Path

from laser.contagion.policy import load_policies

from utils import build_model


class TestDiseasePolicy(unittest.TestCase):
    def test_policy_is_applied_at_its_time(self):
        model = build_model(10, transmission_model="distance")
        policy = model.add_policy(48.0, "dist_mu", 0.5)
        assert model.transmission.mu == 0.0

        model.run(until=47.0)
        assert not policy.applied
        assert model.transmission.mu == 0.0

        with self.assertLogs("laser.contagion.policy", level="INFO") as logs:
            model.run(until=49.0)
        assert policy.applied
        assert any("changed parameter mu" in message for message in logs.output)
        assert model.transmission.mu == 0.5

        return

    def test_bare_parameter_names(self):
        model = build_model(10, transmission_model="distance")
        model.add_policy(1.0, "psi", 1.25)
        model.run(until=2.0)
        assert model.transmission.psi == 1.25

        return

    def test_unknown_parameter(self):
        model = build_model(10, transmission_model="distance")
        with self.assertRaises(ValueError):
            model.add_policy(1.0, "dist_alpha", 2.0)
        assert len(model.scheduler) == 0

        return

    def test_area_model_ignores_policies(self):
        model = build_model(10)
        policy = model.add_policy(1.0, "dist_psi", 2.0)
        with self.assertLogs("laser.contagion.policy", level="INFO") as logs:
            model.run(until=2.0)
        assert not policy.applied
        assert all("could not change" in message for message in logs.output)

        return

    def test_out_of_range_value_is_not_applied(self):
        model = build_model(10, transmission_model="distance")
        policy = model.add_policy(1.0, "dist_mu", 1.5)
        with self.assertLogs("laser.contagion.transmission", level="ERROR"):
            model.run(until=2.0)
        assert not policy.applied
        assert model.transmission.mu == 0.0

        return


class TestPolicyFile(unittest.TestCase):
    def test_load_from_csv(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "policies.csv"
            path.write_text("time,parameter,value\n1,dist_psi,1.5\n2.5, dist_mu, 0.25\n")

            model = build_model(10, transmission_model="distance", policy_file=str(path))

        assert len(model.policies) == 2
        assert model.policies[0].time == 24.0
        assert model.policies[0].parameter == "psi"
        assert model.policies[1].time == 60.0
        assert model.policies[1].parameter == "mu"

        model.run(until=3 * 24.0)
        assert model.transmission.psi == 1.5
        assert model.transmission.mu == 0.25

        return

    def test_missing_columns(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "policies.csv"
            path.write_text("day,parameter,value\n1,dist_psi,1.5\n")
            model = build_model(10, transmission_model="distance")
            with self.assertRaises(ValueError):
                load_policies(model, path)

        return

    def test_no_file(self):
        model = build_model(10)
        assert load_policies(model, "") == []
        assert model.policies == []

        return


if __name__ == "__main__":
    unittest.main()
