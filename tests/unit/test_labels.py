from etcd_operator.common.models.labels import Labels


class TestLabels:
    def test_for_cluster(self):
        assert Labels.for_cluster("demo").as_dict() == {
            "app.kubernetes.io/name": "etcd",
            "app.kubernetes.io/instance": "demo",
            "app.kubernetes.io/managed-by": "etcd-operator",
        }

    def test_as_dict_is_a_copy(self):
        labels = Labels.for_cluster("demo")
        labels.as_dict()["extra"] = "x"
        assert "extra" not in labels.as_dict()

    def test_include(self):
        labels = Labels().include("a", "1").update({"b": "2"})
        assert labels.as_dict() == {"a": "1", "b": "2"}
        assert str(labels) == "Labels<{'a': '1', 'b': '2'}>"
