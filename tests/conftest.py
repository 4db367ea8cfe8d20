import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from viewbot.diagnostics import Reporter
from viewbot.manifest import ChangelogClock

PKG_DIR = "src/main/java/com/example/app"
TEST_PKG_DIR = "src/test/java/com/example/app"
RES_DIR = "src/main/resources/config"

ENTITY_JAVA = """package com.example.app.domain;

import jakarta.persistence.*;
import java.io.Serializable;

/**
 * A OrderSummary.
 */
@Entity
@Table(name = "order_summary")
public class OrderSummary implements Serializable {

    @Id
    private Long id;

    public Long getId() {
        return this.id;
    }
}
"""

REPOSITORY_JAVA = """package com.example.app.repository;

import com.example.app.domain.OrderSummary;
import org.springframework.data.jpa.repository.*;
import org.springframework.stereotype.Repository;

/**
 * Spring Data JPA repository for the OrderSummary entity.
 */
@SuppressWarnings("unused")
@Repository
public interface OrderSummaryRepository extends JpaRepository<OrderSummary, Long> {}
"""

RESOURCE_JAVA = """package com.example.app.web.rest;

import com.example.app.domain.OrderSummary;
import com.example.app.repository.OrderSummaryRepository;
import java.net.URI;
import java.net.URISyntaxException;
import java.util.List;
import java.util.Objects;
import org.springframework.http.ResponseEntity;
import org.springframework.web.bind.annotation.*;
import tech.jhipster.web.util.HeaderUtil;

/**
 * REST controller for managing {@link com.example.app.domain.OrderSummary}.
 */
@RestController
@RequestMapping("/api/order-summaries")
public class OrderSummaryResource {

    private final OrderSummaryRepository orderSummaryRepository;

    public OrderSummaryResource(OrderSummaryRepository orderSummaryRepository) {
        this.orderSummaryRepository = orderSummaryRepository;
    }

    @PostMapping("")
    public ResponseEntity<OrderSummary> createOrderSummary(@RequestBody OrderSummary orderSummary) throws URISyntaxException {
        if (orderSummary.getId() != null) {
            throw new IllegalStateException("A new orderSummary cannot already have an ID");
        }
        orderSummary = orderSummaryRepository.save(orderSummary);
        return ResponseEntity.created(new URI("/api/order-summaries/" + orderSummary.getId()))
            .headers(HeaderUtil.createEntityCreationAlert("app", true, "orderSummary", orderSummary.getId().toString()))
            .body(orderSummary);
    }

    @GetMapping("")
    public List<OrderSummary> getAllOrderSummaries() {
        return orderSummaryRepository.findAll();
    }

    @DeleteMapping("/{id}")
    public ResponseEntity<Void> deleteOrderSummary(@PathVariable("id") Long id) {
        if (!Objects.equals(id, id)) {
            return ResponseEntity.badRequest().build();
        }
        orderSummaryRepository.deleteById(id);
        return ResponseEntity.noContent().headers(HeaderUtil.createEntityDeletionAlert("app", true, "orderSummary", id.toString())).build();
    }
}
"""

SERVICE_JAVA = """package com.example.app.service;

import com.example.app.domain.OrderSummary;
import java.util.Optional;
import org.springframework.stereotype.Service;
import org.springframework.transaction.annotation.Transactional;

/**
 * Service Implementation for managing {@link OrderSummary}.
 */
@Service
@Transactional
public class OrderSummaryService {

    public OrderSummary save(OrderSummary orderSummary) {
        return orderSummary;
    }

    public OrderSummary update(OrderSummary orderSummary) {
        return orderSummary;
    }

    public Optional<OrderSummary> partialUpdate(OrderSummary orderSummary) {
        return Optional.of(orderSummary);
    }

    @Transactional(readOnly = true)
    public Optional<OrderSummary> findOne(Long id) {
        return Optional.empty();
    }

    public void delete(Long id) {
    }
}
"""

RESOURCE_IT_JAVA = """package com.example.app.web.rest;

import static org.assertj.core.api.Assertions.assertThat;

import com.example.app.IntegrationTest;
import org.junit.jupiter.api.Test;
import org.springframework.beans.factory.annotation.Autowired;

/**
 * Integration tests for the {@link OrderSummaryResource} REST controller.
 */
@IntegrationTest
@AutoConfigureMockMvc
@WithMockUser
class OrderSummaryResourceIT {

    @Test
    void getAllOrderSummaries() throws Exception {
        assertThat(true).isTrue();
    }
}
"""

MASTER_XML = """<?xml version="1.0" encoding="utf-8"?>
<databaseChangeLog
    xmlns="http://www.liquibase.org/xml/ns/dbchangelog">
    <include file="config/liquibase/changelog/00000000000000_initial_schema.xml" relativeToChangelogFile="false"/>
    <include file="config/liquibase/changelog/20240101000000_added_entity_OrderSummary.xml" relativeToChangelogFile="false"/>
    <!-- jhipster-needle-liquibase-add-changelog - JHipster will add liquibase changelogs here -->
    <include file="config/liquibase/changelog/20240101000000_added_entity_constraints_OrderSummary.xml" relativeToChangelogFile="false"/>
    <!-- jhipster-needle-liquibase-add-constraints-changelog - JHipster will add liquibase constraints changelogs here -->
</databaseChangeLog>
"""

APPLICATION_YML = """spring:
  application:
    name: app

# jhipster-needle-application-properties
application:
  cache: false
"""

ORDER_SUMMARY_CONFIG = {
    "name": "OrderSummary",
    "entityTableName": "order_summary",
    "fields": [
        {"fieldName": "customerName", "fieldType": "String"},
        {"fieldName": "totalAmount", "fieldType": "BigDecimal"},
    ],
    "annotations": {"view": True, "sqlFile": "sql/order_summary.sql", "mybatis": True},
}

ORDER_SUMMARY_SQL = "CREATE OR REPLACE VIEW order_summary AS\nSELECT o.id, o.customer_name, o.total_amount FROM orders o WHERE o.total_amount > 0\n"


def write(root: Path, rel: str, text: str) -> Path:
    pth = root / rel
    pth.parent.mkdir(parents=True, exist_ok=True)
    with open(pth, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    return pth


def read(root: Path, rel: str) -> str:
    with open(root / rel, "r", encoding="utf-8", newline="") as fh:
        return fh.read()


@pytest.fixture
def console_out():
    return io.StringIO()


@pytest.fixture
def reporter(console_out):
    return Reporter(console=Console(file=console_out, width=200), quiet=False)


@pytest.fixture
def fixed_clock():
    import datetime as dt

    return ChangelogClock(now=lambda: dt.datetime(2024, 1, 2, 3, 4, 5))


@pytest.fixture
def app_root(tmp_path):
    """A generated JHipster application with one view entity."""
    root = tmp_path / "app"
    write(root, ".yo-rc.json", json.dumps({"generator-jhipster": {"packageName": "com.example.app"}}))
    write(root, ".jhipster/OrderSummary.json", json.dumps(ORDER_SUMMARY_CONFIG))
    write(root, "sql/order_summary.sql", ORDER_SUMMARY_SQL)
    write(root, f"{PKG_DIR}/domain/OrderSummary.java", ENTITY_JAVA)
    write(root, f"{PKG_DIR}/repository/OrderSummaryRepository.java", REPOSITORY_JAVA)
    write(root, f"{PKG_DIR}/web/rest/OrderSummaryResource.java", RESOURCE_JAVA)
    write(root, f"{PKG_DIR}/service/OrderSummaryService.java", SERVICE_JAVA)
    write(root, f"{TEST_PKG_DIR}/web/rest/OrderSummaryResourceIT.java", RESOURCE_IT_JAVA)
    write(root, f"{RES_DIR}/liquibase/master.xml", MASTER_XML)
    write(root, f"{RES_DIR}/liquibase/changelog/20240101000000_added_entity_OrderSummary.xml", "<databaseChangeLog/>\n")
    write(root, f"{RES_DIR}/liquibase/changelog/20240101000000_added_entity_constraints_OrderSummary.xml",
          "<databaseChangeLog/>\n")
    write(root, f"{RES_DIR}/liquibase/fake-data/order_summary.csv", "id;customer_name\n1;a\n")
    write(root, f"{RES_DIR}/application.yml", APPLICATION_YML)
    return root
