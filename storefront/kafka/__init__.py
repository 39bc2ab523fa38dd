from storefront.kafka.producer import ProductEventProducer, NoOpEventProducer, build_event_producer
