from datetime import timedelta

from sailscore.mqconfig import ConsumerConfig, MqConfig, ProducerConfig, default_config


def test_default_producer_settings():
    config = default_config()
    assert config.producer.topics == ["default_topic"]
    assert config.producer.timeout == timedelta(seconds=3)
    assert config.producer.retries == 3


def test_default_consumer_settings():
    config = default_config()
    assert config.consumer.group == "default_group"
    assert config.consumer.await_duration == timedelta(seconds=15)
    assert config.consumer.max_message_num == 32
    assert config.consumer.invisible_duration == timedelta(seconds=20)


def test_default_connection_fields_are_empty():
    config = default_config()
    assert (config.endpoint, config.access_key, config.secret_key, config.namespace) == ("", "", "", "")


def test_zero_config():
    config = MqConfig()
    assert config.producer == ProducerConfig()
    assert config.consumer == ConsumerConfig()
    assert config.producer.topics == []
    assert config.consumer.max_message_num == 0
    assert config.consumer.await_duration == timedelta(0)


def test_default_configs_do_not_share_state():
    first = default_config()
    second = default_config()
    first.producer.topics.append("extra")
    assert second.producer.topics == ["default_topic"]